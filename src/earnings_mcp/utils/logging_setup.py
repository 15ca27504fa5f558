"""Logging setup — every diagnostic goes to stderr.

stdout carries protocol frames in stdio mode, so nothing here may write to it.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def configure_logging(level: str | int = "INFO") -> None:
    """Install a stderr :class:`RichHandler` on the root logger."""
    if isinstance(level, str):
        level = level.upper()
    handler = RichHandler(console=stderr_console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
