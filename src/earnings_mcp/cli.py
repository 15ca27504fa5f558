"""earnings-mcp CLI entrypoint."""

from __future__ import annotations

import logging
import sys

import click

from earnings_mcp import __version__
from earnings_mcp.config import load_config
from earnings_mcp.errors import ConfigError
from earnings_mcp.utils.logging_setup import configure_logging, stderr_console

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="earnings-mcp")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    envvar="EARNINGS_MCP_CONFIG",
    help="YAML config file (overrides environment variables).",
)
@click.option("--log-level", default=None, help="Override the configured log level (e.g. DEBUG).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Earnings MCP Server: portfolio, stock and AI-analysis tools over MCP."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        stderr_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if log_level:
        config = config.model_copy(update={"log_level": log_level})
    configure_logging(config.log_level)

    if config.telemetry.enabled:
        _enable_telemetry(config.telemetry.otlp_endpoint)

    ctx.obj = config


def _enable_telemetry(otlp_endpoint: str | None) -> None:
    from earnings_mcp.utils.telemetry import configure_telemetry

    try:
        configure_telemetry(otlp_endpoint)
    except ImportError as exc:
        logger.warning("Telemetry disabled: %s", exc)


# Register subcommands
from earnings_mcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
