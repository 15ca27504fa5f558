"""The fixed tool catalog, in the order advertised by ``tools/list``."""

from __future__ import annotations

from earnings_mcp.tools.ai import AI_TOOLS
from earnings_mcp.tools.portfolios import PORTFOLIO_TOOLS
from earnings_mcp.tools.registry import Tool, ToolRegistry
from earnings_mcp.tools.stocks import STOCK_TOOLS


def build_tools() -> tuple[Tool, ...]:
    return (*PORTFOLIO_TOOLS, *STOCK_TOOLS, *AI_TOOLS)


def build_registry() -> ToolRegistry:
    return ToolRegistry(build_tools())
