"""Tool catalog: schemas, registry and handlers."""

from earnings_mcp.tools.catalog import build_registry, build_tools
from earnings_mcp.tools.registry import Tool, ToolContext, ToolRegistry
from earnings_mcp.tools.schema import ToolSchema

__all__ = [
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolSchema",
    "build_registry",
    "build_tools",
]
