"""Anki inbox MCP server."""

__version__ = "1.3.0"
