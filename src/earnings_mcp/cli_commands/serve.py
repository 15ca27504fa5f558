"""``earnings-mcp serve|stdio|bridge`` — run one of the transports."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from earnings_mcp.config import ServerConfig
from earnings_mcp.utils.logging_setup import stderr_console

if TYPE_CHECKING:
    from earnings_mcp.server.stdio import StdioServer


@click.command()
@click.option("--host", default=None, help="Bind address (default: configured host).")
@click.option("--port", type=int, default=None, help="Bind port (default: configured port).")
@click.pass_obj
def serve(config: ServerConfig, host: str | None, port: int | None) -> None:
    """Serve JSON-RPC over HTTP on POST /mcp."""
    from earnings_mcp.server.http import serve as serve_http

    serve_http(config, host=host, port=port)


@click.command()
@click.pass_obj
def stdio(config: ServerConfig) -> None:
    """Serve JSON-RPC over stdin/stdout, dispatching in-process."""
    from earnings_mcp.server.dispatcher import build_dispatcher
    from earnings_mcp.server.stdio import LocalHandler, StdioServer

    dispatcher = build_dispatcher(config)
    stderr_console.print(f"[bold]Earnings MCP Server (stdio)[/bold] API: {config.api_url}")
    ai_state = "configured" if config.ai.is_configured else "not configured"
    stderr_console.print(f"AI inference ({config.ai.model}): {ai_state}")
    _run(StdioServer(LocalHandler(dispatcher)))


@click.command()
@click.option("--url", default=None, help="Remote /mcp endpoint (default: configured remote_url).")
@click.option("--timeout", type=float, default=120.0, show_default=True, help="Per-request timeout in seconds.")
@click.pass_obj
def bridge(config: ServerConfig, url: str | None, timeout: float) -> None:
    """Relay stdin/stdout JSON-RPC lines to a remote HTTP server."""
    from earnings_mcp.server.stdio import RemoteForwarder, StdioServer

    target = url or config.remote_url
    stderr_console.print(f"[bold]Earnings MCP bridge[/bold] -> {target}")
    _run(StdioServer(RemoteForwarder(target, timeout=timeout)))


def _run(server: StdioServer) -> None:
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        stderr_console.print("[dim]Interrupted.[/dim]")
