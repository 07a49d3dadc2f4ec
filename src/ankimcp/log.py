"""Logging setup. Everything goes to stderr; stdout belongs to MCP."""

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def configure_logging(level: str = "WARNING") -> None:
    """Send log records for the whole process to stderr via rich."""
    handler = RichHandler(console=stderr_console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
