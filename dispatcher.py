"""
Tool call dispatch for the Hunter.io MCP Server

Every call is logged on receipt and on completion, validated before any
network traffic, executed through the resilient invoker, and answered with a
single text block. Only malformed requests surface as MCP protocol errors.
"""
import json
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import anyio
import httpx
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, CallToolResult, ErrorData, TextContent

from diagnostics import DiagnosticsSink
from hunter_client import HunterAPIError, HunterClient, remote_error_message
from models import OperationSpec
from retry import ResilientInvoker
from tools import get_operation
from validator import ArgumentValidationError, validate_arguments


def envelope(text: str, is_error: bool = False) -> CallToolResult:
    """Wrap text in the response envelope returned for every tool call"""
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


def describe_failure(error: BaseException) -> str:
    """Best human-readable message for a failed remote call"""
    if isinstance(error, (HunterAPIError, httpx.HTTPError)):
        return f"API Error: {remote_error_message(error) or str(error)}"
    return f"Error: {error}"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ToolDispatcher:
    """Routes tool calls to Hunter.io and normalizes the outcome"""

    def __init__(
        self,
        client: HunterClient,
        invoker: ResilientInvoker,
        sink: DiagnosticsSink,
    ):
        self.client = client
        self.invoker = invoker
        self.sink = sink

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """
        Handle one tool call

        Args:
            name: Tool name requested by the client
            arguments: Raw argument bag, or None if the client sent none

        Returns:
            Response envelope; isError is set for unknown tools and failed calls

        Raises:
            McpError: INVALID_PARAMS when arguments are missing or invalid
        """
        start_time = time.monotonic()
        try:
            await self.sink.info(f"[{_timestamp()}] Received request for tool: {name}")

            if arguments is None:
                raise McpError(ErrorData(code=INVALID_PARAMS, message="No arguments provided"))

            operation = get_operation(name)
            if operation is None:
                return envelope(f"Unknown tool: {name}", is_error=True)

            try:
                params = validate_arguments(operation, arguments)
            except ArgumentValidationError as e:
                await self.sink.warning(str(e))
                raise McpError(
                    ErrorData(
                        code=INVALID_PARAMS,
                        message=f"Invalid arguments for {name}",
                        data={"tool": name, "errors": e.problems},
                    )
                )

            return await self._invoke(operation, params)

        except McpError:
            raise
        except Exception as e:
            await self.sink.error({
                "message": f"Request failed: {e}",
                "tool": name,
                "arguments": arguments,
                "timestamp": _timestamp(),
                "duration": self._elapsed_ms(start_time),
            })
            return envelope(f"Error: {e}", is_error=True)
        finally:
            # Still reported when the call is cancelled mid-flight
            with anyio.CancelScope(shield=True):
                await self.sink.info(f"Request completed in {self._elapsed_ms(start_time)}ms")

    async def _invoke(self, operation: OperationSpec, params: Dict[str, Any]) -> CallToolResult:
        try:
            body = await self.invoker.call(
                lambda: self.client.get(operation.path, params),
                operation.label,
            )
        except Exception as e:
            message = describe_failure(e)
            await self.sink.warning(f"{operation.label} failed: {message}")
            return envelope(message, is_error=True)

        return envelope(json.dumps(body, indent=2, ensure_ascii=False))

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return round((time.monotonic() - start_time) * 1000)
