"""Earnings MCP Server: portfolio, stock and AI-analysis tools over the Model Context Protocol."""

from __future__ import annotations

__version__ = "1.0.0"

SERVER_NAME = "earnings-mcp-server"
