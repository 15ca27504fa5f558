"""Dispatcher and transport adapters (stdio and HTTP)."""

from earnings_mcp.server.dispatcher import McpDispatcher, build_dispatcher
from earnings_mcp.server.stdio import LocalHandler, RemoteForwarder, StdioServer

__all__ = [
    "LocalHandler",
    "McpDispatcher",
    "RemoteForwarder",
    "StdioServer",
    "build_dispatcher",
]
