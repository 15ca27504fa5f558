"""``earnings-mcp tools`` — inspect the catalog and run tools locally."""

from __future__ import annotations

import asyncio
import json
import sys

import click

from earnings_mcp.cli_commands._output import console, print_tools_table
from earnings_mcp.config import ServerConfig


@click.group()
def tools() -> None:
    """Inspect and call tools."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list payload as JSON.")
def list_tools(as_json: bool) -> None:
    """List every tool in the catalog."""
    from earnings_mcp.tools.catalog import build_registry

    descriptors = build_registry().list()
    if as_json:
        console.print_json(json.dumps({"tools": [d.to_wire() for d in descriptors]}))
        return
    print_tools_table(descriptors)


@tools.command("call")
@click.argument("name")
@click.option("--args", "raw_args", default="{}", show_default=True, help="Tool arguments as a JSON object.")
@click.pass_obj
def call(config: ServerConfig, name: str, raw_args: str) -> None:
    """Run tool NAME once and print its text output."""
    from earnings_mcp.server.dispatcher import build_dispatcher

    try:
        arguments = json.loads(raw_args)
    except ValueError as exc:
        console.print(f"[red]Invalid --args JSON:[/red] {exc}")
        sys.exit(1)

    dispatcher = build_dispatcher(config)
    result = asyncio.run(dispatcher.call_tool(name, arguments))
    click.echo(result.text)
    if result.is_error:
        sys.exit(1)
