"""Keeping stray output and unreadable AnkiConnect replies off the protocol.

stdout carries the MCP stream, so anything else printed there (Anki add-on
banners, library warnings, debug prints) would corrupt it. Likewise a reply
from AnkiConnect that isn't JSON must not abort the request being handled.
"""

from __future__ import annotations

import functools
import io
import json
import logging
import re
from typing import Any, Callable, TextIO, TYPE_CHECKING

from .client import ResponseDecodeError
from .models import UnparsedResponse

if TYPE_CHECKING:
    from .client import AnkiClient

logger = logging.getLogger(__name__)

ENVELOPE_MARKER = '{"jsonrpc"'

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_MAX_FALLBACK_TEXT = 500


class ProtocolStream(io.TextIOBase):
    """Text stream that only lets JSON-RPC messages through.

    A write is forwarded if, once surrounding whitespace is ignored, it
    starts with the JSON-RPC envelope. Everything else is discarded but
    still reported as written so callers never retry or block on it.
    """

    def __init__(self, stream: TextIO, marker: str = ENVELOPE_MARKER):
        super().__init__()
        self._stream = stream
        self.marker = marker

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        if s.strip().startswith(self.marker):
            self._stream.write(s)
        elif s.strip():
            logger.debug("Dropped non-protocol output: %r", s[:200])
        return len(s)

    def flush(self) -> None:
        self._stream.flush()

    @property
    def encoding(self) -> str:
        return getattr(self._stream, "encoding", "utf-8")


def sanitize_text(text: str) -> str:
    """Control characters removed, whitespace trimmed, length capped."""
    return _CONTROL_CHARS.sub("", text).strip()[:_MAX_FALLBACK_TEXT]


def safe_loads(text: str) -> Any:
    """``json.loads`` that never raises on bad input.

    If the body has noise in front of a JSON object (an add-on printing a
    banner, say), the object is recovered. Otherwise an UnparsedResponse
    holding the sanitized text is returned.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    if start > 0:
        try:
            value, _ = json.JSONDecoder().raw_decode(text, start)
            logger.debug("Recovered JSON after %d bytes of noise", start)
            return value
        except json.JSONDecodeError:
            pass

    logger.debug("Response is not JSON: %r", text[:200])
    return UnparsedResponse(text=sanitize_text(text))


# What each client method yields when the reply could not be decoded
NEUTRAL_RESULTS: dict[str, Callable[[], Any]] = {
    "version": lambda: None,
    "deck_names": list,
    "create_deck": lambda: None,
    "clone_deck_config": lambda: None,
    "set_deck_config_id": lambda: False,
    "find_cards": list,
    "cards_info": list,
    "add_note": lambda: None,
    "answer_cards": list,
}


def absorb_decode_errors(method: Callable, default: Callable[[], Any]) -> Callable:
    """Wrap a client method so undecodable replies become ``default()``.

    Any other AnkiConnectError still propagates.
    """
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except ResponseDecodeError as e:
            logger.warning("Ignoring unreadable response to %s: %r", e.action, e.text[:200])
            return default()
    return wrapper


class GuardedClient:
    """An AnkiClient whose calls degrade to neutral results on bad replies."""

    def __init__(self, client: AnkiClient, neutral: dict[str, Callable[[], Any]] | None = None):
        self._client = client
        for name, default in (neutral or NEUTRAL_RESULTS).items():
            setattr(self, name, absorb_decode_errors(getattr(client, name), default))

    def __getattr__(self, name: str) -> Any:
        return getattr(self._client, name)


def guard_client(client: AnkiClient) -> GuardedClient:
    return GuardedClient(client)
