"""MCP server exposing Anki cards as resources and review/creation tools.

Usage:
    # stdio (Claude Desktop and other MCP clients)
    ankimcp serve

    # With a different inbox deck
    ANKI_INBOX_PREFIX=Inbox ankimcp serve
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import redirect_stdout
from datetime import date
from io import TextIOWrapper
from typing import Any, Callable, TextIO
from urllib.parse import urlparse

import anyio
import mcp.types as types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from . import __version__
from .client import AnkiClient, AnkiConnectError
from .config import Config, load_config
from .decks import DeckProvisioner
from .guard import GuardedClient, ProtocolStream, guard_client, safe_loads
from .log import configure_logging
from .search import find_cards_and_order
from .tool_handlers import HANDLERS, InvalidRequestError, ToolError, cards_to_json
from .tools import ANKI_RESOURCES, ANKI_TOOLS

logger = logging.getLogger(__name__)

SERVER_NAME = "anki-server"


def build_client(config: Config) -> GuardedClient:
    """AnkiConnect client with the transport guard applied."""
    return guard_client(AnkiClient(
        url=config.anki_connect_url,
        timeout=config.timeout,
        loads=safe_loads,
    ))


def resource_filter(uri: str) -> str:
    """The filter token of a resource URI: its last path segment."""
    query = urlparse(str(uri)).path.split("/")[-1]
    if not query:
        raise InvalidRequestError(f"Invalid resource URI: {uri}")
    return query


class Dispatcher:
    """Routes MCP requests to the backend. Stateless between requests."""

    def __init__(
        self,
        anki: AnkiClient | GuardedClient,
        config: Config,
        provisioner: DeckProvisioner | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.anki = anki
        self.config = config
        self.provisioner = provisioner or DeckProvisioner(
            anki,
            clone_config=config.clone_deck_config,
            default_config_id=config.default_config_id,
        )
        self.clock = clock

    def list_resources(self) -> list[dict]:
        return [dict(r) for r in ANKI_RESOURCES]

    def read_resource(self, uri: str) -> str:
        """JSON array of the cards matching the resource's filter, by due."""
        cards = find_cards_and_order(self.anki, resource_filter(uri))
        return cards_to_json(cards)

    def list_tools(self) -> list[dict]:
        return [dict(t) for t in ANKI_TOOLS]

    def call_tool(self, name: str, arguments: dict[str, Any] | None) -> str:
        if not arguments:
            raise InvalidRequestError(f"No arguments provided for tool: {name}")
        fn = HANDLERS.get(name)
        if fn is None:
            raise InvalidRequestError(f"Unknown tool: {name}")
        return fn(
            self.anki,
            arguments,
            config=self.config,
            provisioner=self.provisioner,
            today=self.clock(),
        )


async def _run_logged(what: str, fn: Callable, *args) -> Any:
    """Run a blocking dispatcher call off the event loop, logging failures."""
    try:
        return await asyncio.to_thread(fn, *args)
    except ToolError as e:
        logger.info("%s rejected: %s", what, e)
        raise
    except AnkiConnectError as e:
        logger.warning("%s failed: %s", what, e)
        raise
    except Exception:
        logger.exception("%s failed", what)
        raise


def create_server(dispatcher: Dispatcher, name: str = SERVER_NAME) -> Server:
    """Create the MCP server and register the dispatcher's handlers."""
    server = Server(name, version=__version__)

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return [types.Resource(**r) for r in dispatcher.list_resources()]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        text = await _run_logged(f"Reading {uri}", dispatcher.read_resource, str(uri))
        return [ReadResourceContents(content=text, mime_type="application/json")]

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [types.Tool(**t) for t in dispatcher.list_tools()]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        text = await _run_logged(f"Tool {name}", dispatcher.call_tool, name, arguments)
        return [types.TextContent(type="text", text=text)]

    return server


async def run_stdio(dispatcher: Dispatcher, stdout: TextIO | None = None) -> None:
    """Serve over stdio with stdout filtered down to protocol messages."""
    guarded = ProtocolStream(stdout or TextIOWrapper(sys.stdout.buffer, encoding="utf-8"))
    server = create_server(dispatcher)
    # Stray print() calls from anywhere in the process land in the guard too
    with redirect_stdout(guarded):
        async with stdio_server(stdout=anyio.wrap_file(guarded)) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())


def serve(config: Config | None = None) -> None:
    """Entry point: configure logging, check Anki once, then serve on stdio."""
    config = config or load_config()
    configure_logging(config.log_level)

    anki = build_client(config)
    if not anki.ping():
        logger.warning(
            "Cannot reach AnkiConnect at %s. Start Anki with AnkiConnect installed; "
            "requests will connect once it is available.",
            config.anki_connect_url,
        )

    logger.info("Anki MCP server %s running on stdio (inbox: %s)", __version__, config.inbox_prefix)
    asyncio.run(run_stdio(Dispatcher(anki, config)))
