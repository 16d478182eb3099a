"""
MCP server wiring for the Hunter.io tools
Runs over stdio or over SSE (FastAPI app served by uvicorn)
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, List, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from loguru import logger
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server

from config import Settings
from diagnostics import DiagnosticsSink, Transport
from dispatcher import ToolDispatcher
from hunter_client import HunterClient
from retry import ResilientInvoker
from tools import list_tools

# Distribution version too; pyproject.toml reads it from here
__version__ = "1.0.0"


class HunterMCPServer:
    """Hunter.io MCP server: tool catalog, dispatch and transports"""

    def __init__(
        self,
        settings: Settings,
        transport: Transport = Transport.STDIO,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self.transport = Transport(transport)
        self.server = Server(settings.service_name, version=__version__)
        self.sink = DiagnosticsSink(self.transport, self.server, logger_name=settings.service_name)
        self.client = HunterClient(
            settings.hunter_api_key,
            base_url=settings.hunter_api_url,
            timeout=settings.request_timeout,
            transport=http_transport,
        )
        self.invoker = ResilientInvoker(settings.retry, self.sink, sleep=sleep)
        self.dispatcher = ToolDispatcher(self.client, self.invoker, self.sink)
        self._register_handlers()

    def _register_handlers(self):
        """Register MCP request handlers"""
        self.server.list_tools()(self._list_tools)
        self.server.set_logging_level()(self._set_logging_level)
        # Registered directly so McpError reaches the client as a JSON-RPC error
        # instead of being folded into an isError result.
        self.server.request_handlers[types.CallToolRequest] = self._handle_call_tool

    async def _list_tools(self) -> List[types.Tool]:
        return list_tools()

    async def _set_logging_level(self, level: types.LoggingLevel) -> None:
        self.sink.set_client_level(level)

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self.dispatcher.dispatch(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    async def _announce(self):
        await self.sink.info("Hunter.io MCP Server initialized successfully")
        await self.sink.info(f"Configuration: API URL: {self.settings.hunter_api_url}")

    async def run_stdio(self):
        """Serve MCP over stdin/stdout until the client disconnects"""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self._announce()
                logger.info("Hunter.io MCP Server running on stdio")
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()

    def create_sse_app(self) -> FastAPI:
        """FastAPI application exposing the server over SSE"""
        sse = SseServerTransport("/messages/")

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            logger.info("Starting Hunter.io MCP SSE service")
            await self._announce()
            yield
            logger.info("Shutting down Hunter.io MCP SSE service")
            await self.close()

        app = FastAPI(
            title="Hunter.io MCP Server",
            description="Hunter.io email intelligence tools over MCP (SSE transport)",
            version=__version__,
            lifespan=lifespan,
        )

        async def handle_sse(request: Request):
            async with sse.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
            return Response()

        app.add_route("/sse", handle_sse, methods=["GET"])
        app.mount("/messages/", app=sse.handle_post_message)

        @app.get("/health")
        async def health_check():
            """Liveness probe"""
            return {
                "status": "healthy",
                "service": self.settings.service_name,
                "version": __version__,
            }

        return app

    async def run_sse(self, host: str, port: int):
        """Serve MCP over SSE until interrupted"""
        config = uvicorn.Config(
            self.create_sse_app(),
            host=host,
            port=port,
            log_level="info",
            access_log=False,
        )
        await uvicorn.Server(config).serve()

    async def close(self):
        await self.client.close()
