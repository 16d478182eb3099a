"""
Hunter.io MCP Server entry point
Command line interface for serving the MCP tools and calling them directly
"""
import asyncio
import json
import os
import sys
from typing import Optional

import typer
from loguru import logger
from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from config import Settings, get_settings
from diagnostics import Transport
from server import HunterMCPServer
from tools import OPERATIONS, list_tools

# CLI Application
app = typer.Typer(help="Hunter.io MCP Server - email intelligence tools over the Model Context Protocol")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | "
    "<level>{message}</level>"
)


def setup_logging(settings: Settings):
    """Setup logging; stdout is reserved for protocol traffic"""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=LOG_FORMAT,
        colorize=False,
        backtrace=False,
        diagnose=False
    )

    if settings.log_file_enabled:
        os.makedirs(settings.log_file_path, exist_ok=True)

        logger.add(
            f"{settings.log_file_path}/service.log",
            level=settings.log_level,
            format=LOG_FORMAT,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            compression="gz",
            colorize=False
        )
        logger.add(
            f"{settings.log_file_path}/errors.log",
            level="ERROR",
            format=LOG_FORMAT,
            rotation=settings.log_rotation,
            retention="90 days",
            compression="gz",
            colorize=False
        )


def load_settings() -> Settings:
    """Load settings, exiting with status 1 on configuration errors"""
    try:
        return get_settings()
    except ValidationError as e:
        if any(error["loc"] and error["loc"][0] == "hunter_api_key" for error in e.errors()):
            typer.echo("Error: HUNTER_API_KEY environment variable is required", err=True)
        else:
            typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def serve(
    transport: Optional[Transport] = typer.Option(None, "--transport", "-t", help="MCP transport (defaults to MCP_TRANSPORT)"),
    host: Optional[str] = typer.Option(None, "--host", help="Host for the SSE server"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port for the SSE server"),
):
    """Run the MCP server"""
    settings = load_settings()
    setup_logging(settings)
    transport = transport or Transport(settings.mcp_transport)

    typer.echo("Initializing Hunter.io MCP Server...", err=True)
    if transport is Transport.STDIO:
        typer.echo("Running in stdio mode, logging will be directed to stderr", err=True)

    async def run():
        service = HunterMCPServer(settings, transport=transport)
        if transport is Transport.STDIO:
            await service.run_stdio()
        else:
            await service.run_sse(host or settings.sse_host, port or settings.sse_port)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    except Exception as e:
        typer.echo(f"Fatal error running server: {e}", err=True)
        raise typer.Exit(1)


@app.command("tools")
def show_tools(
    json_output: bool = typer.Option(False, "--json", help="Print the full tool catalog as JSON")
):
    """List the available tools"""
    if json_output:
        catalog = [tool.model_dump(exclude_none=True) for tool in list_tools()]
        typer.echo(json.dumps(catalog, indent=2))
        return

    for operation in OPERATIONS:
        typer.echo(f"{operation.name}: {operation.description}")


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name, e.g. hunter_find_email"),
    args: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object"),
):
    """Call a single tool and print its result"""
    try:
        arguments = json.loads(args)
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON for --args: {e}", err=True)
        raise typer.Exit(1)

    settings = load_settings()
    setup_logging(settings)

    async def run():
        service = HunterMCPServer(settings, transport=Transport.STDIO)
        try:
            return await service.dispatcher.dispatch(name, arguments)
        finally:
            await service.close()

    try:
        result = asyncio.run(run())
    except McpError as e:
        typer.echo(f"Error: {e.error.message}", err=True)
        if e.error.data:
            typer.echo(json.dumps(e.error.data, indent=2), err=True)
        raise typer.Exit(1)

    for block in result.content:
        typer.echo(block.text)
    if result.isError:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
