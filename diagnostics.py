"""
Diagnostics routing for the Hunter.io MCP Server

Over stdio, stdout carries the MCP protocol stream, so diagnostics go to
loguru (whose handlers write to stderr). Over SSE, diagnostics are forwarded
to the connected client through the MCP logging channel.
"""
import json
from enum import Enum
from typing import Any, Dict, Optional

import anyio
from loguru import logger
from mcp.server.lowlevel import Server


class Transport(str, Enum):
    """Kind of transport the server speaks MCP over"""
    STDIO = "stdio"
    SSE = "sse"


# MCP logging levels in increasing severity, mapped to loguru levels
LOG_LEVELS: Dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "notice": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
    "alert": "CRITICAL",
    "emergency": "CRITICAL",
}
_SEVERITY = {level: rank for rank, level in enumerate(LOG_LEVELS)}


def render(data: Any) -> str:
    """Render a diagnostic payload as a single log line"""
    if isinstance(data, (dict, list)):
        return json.dumps(data, default=str, ensure_ascii=False)
    return str(data)


class DiagnosticsSink:
    """Routes diagnostic events according to a transport chosen at startup"""

    def __init__(self, transport: Transport, server: Optional[Server] = None, logger_name: str = "hunter-io-mcp"):
        self.transport = Transport(transport)
        self.server = server
        self.logger_name = logger_name
        # Threshold for events forwarded to the client, adjustable via logging/setLevel
        self.client_level = "debug"

    @property
    def uses_stderr(self) -> bool:
        return self.transport is Transport.STDIO or self.server is None

    def set_client_level(self, level: str) -> None:
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown logging level: {level}")
        self.client_level = level

    async def log(self, level: str, data: Any) -> None:
        """Emit one diagnostic event; never raises into the caller"""
        if level not in LOG_LEVELS:
            level = "info"

        if self.uses_stderr:
            self._log_local(level, data)
            return

        if _SEVERITY[level] < _SEVERITY[self.client_level]:
            return

        try:
            session = self.server.request_context.session
        except LookupError:
            # No active request to attach the message to
            self._log_local(level, data)
            return

        try:
            await session.send_log_message(level=level, data=data, logger=self.logger_name)
        except anyio.get_cancelled_exc_class():
            # Keep a local record of what the client will not receive
            self._log_local(level, data)
            raise
        except Exception as e:
            logger.warning(f"Failed to forward log message to client: {e}")
            self._log_local(level, data)

    def _log_local(self, level: str, data: Any) -> None:
        logger.log(LOG_LEVELS[level], render(data))

    async def debug(self, data: Any) -> None:
        await self.log("debug", data)

    async def info(self, data: Any) -> None:
        await self.log("info", data)

    async def warning(self, data: Any) -> None:
        await self.log("warning", data)

    async def error(self, data: Any) -> None:
        await self.log("error", data)
