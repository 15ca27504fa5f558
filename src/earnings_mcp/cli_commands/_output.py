"""Shared CLI output formatters."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from earnings_mcp.protocol.models import ToolDescriptor  # noqa: TC001

console = Console()


def print_tools_table(tools: list[ToolDescriptor]) -> None:
    """Pretty-print the tool catalog as a table."""
    table = Table(title="Earnings MCP Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Arguments")
    table.add_column("Description")

    for tool in tools:
        properties = tool.input_schema.get("properties", {})
        required = set(tool.input_schema.get("required", []))
        args = ", ".join(f"{name}*" if name in required else name for name in properties)
        table.add_row(tool.name, args or "-", _truncate(_first_line(tool.description)))

    console.print(table)
    console.print("[dim]* required argument[/dim]")


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else ""


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
