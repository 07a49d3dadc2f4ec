"""Tool handler registry for the Anki MCP server.

Each handler is registered with @handler("tool_name") and receives:
    anki: AnkiClient (or GuardedClient) instance
    tool_input: dict of tool arguments
    **ctx: config, provisioner and today's date

Handlers return the text sent back to the client and raise ToolError when
the call should be reported as failed.
"""

from __future__ import annotations

import json
import math
from datetime import date
from typing import Any, Callable, TYPE_CHECKING

from .decks import today_deck_name
from .search import find_cards_and_order

if TYPE_CHECKING:
    from .client import AnkiClient
    from .config import Config
    from .decks import DeckProvisioner

HANDLERS: dict[str, Callable] = {}


class ToolError(Exception):
    """A tool call that failed and should be reported to the client."""
    pass


class InvalidRequestError(ToolError):
    """The request itself was malformed: missing arguments, unknown names."""
    pass


def handler(name: str):
    """Decorator to register a tool handler."""
    def decorator(fn: Callable) -> Callable:
        HANDLERS[name] = fn
        return fn
    return decorator


def _require(tool_input: dict, key: str, tool: str) -> Any:
    if tool_input.get(key) is None:
        raise InvalidRequestError(f"Missing required argument '{key}' for tool: {tool}")
    return tool_input[key]


def _as_int(value: Any, what: str) -> int:
    """Coerce a JSON number (or numeric string) to an int."""
    if isinstance(value, bool):
        raise InvalidRequestError(f"{what} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{what} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidRequestError(f"{what} must be a finite number, got {value!r}")
    return int(number)


def cards_to_json(cards) -> str:
    return json.dumps([c.to_dict() for c in cards], ensure_ascii=False)


# ---------------------------------------------------------------------------
# Reviewing
# ---------------------------------------------------------------------------

@handler("update_cards")
def handle_update_cards(anki: AnkiClient, tool_input: dict, **ctx) -> str:
    raw_answers = _require(tool_input, "answers", "update_cards")
    if not isinstance(raw_answers, list):
        raise InvalidRequestError("'answers' must be an array of {cardId, ease} objects")

    answers = []
    for item in raw_answers:
        if not isinstance(item, dict):
            raise InvalidRequestError(f"Invalid answer {item!r}: expected {{cardId, ease}}")
        answers.append({
            "cardId": _as_int(_require(item, "cardId", "update_cards"), "cardId"),
            "ease": _as_int(_require(item, "ease", "update_cards"), "ease"),
        })

    results = anki.answer_cards(answers)

    # answerCards reports one boolean per answer, by position
    succeeded = []
    failed = []
    for i, answer in enumerate(answers):
        if i < len(results) and results[i]:
            succeeded.append(answer["cardId"])
        else:
            failed.append(answer["cardId"])

    if failed:
        raise ToolError(f"Failed to update cards with IDs: {', '.join(map(str, failed))}")
    return f"Updated cards {', '.join(map(str, succeeded))}"


# ---------------------------------------------------------------------------
# Card creation
# ---------------------------------------------------------------------------

@handler("add_card")
def handle_add_card(anki: AnkiClient, tool_input: dict, **ctx) -> str:
    front = str(_require(tool_input, "front", "add_card"))
    back = str(_require(tool_input, "back", "add_card"))
    config: Config = ctx["config"]
    provisioner: DeckProvisioner = ctx["provisioner"]
    today: date | None = ctx.get("today")

    deck_name = today_deck_name(config.inbox_prefix, today)
    if not provisioner.ensure(deck_name):
        raise ToolError(f"Failed to create deck: {deck_name}")

    note_id = anki.add_note(deck_name, {"Front": front, "Back": back}, model_name="Basic")
    if not note_id:
        raise ToolError("Failed to add note to Anki")

    card_ids = anki.find_cards(f"nid:{note_id}")
    if not card_ids:
        return f"Created note {note_id} in deck {deck_name}, but its card could not be looked up"
    return f"Created card with id {card_ids[0]} in deck {deck_name}"


# ---------------------------------------------------------------------------
# Fetching cards
# ---------------------------------------------------------------------------

def _first_cards(anki: AnkiClient, tool_input: dict, query: str, tool: str) -> str:
    num = max(0, _as_int(_require(tool_input, "num", tool), "num"))
    cards = find_cards_and_order(anki, query)
    return cards_to_json(cards[:num])


@handler("get_due_cards")
def handle_get_due_cards(anki: AnkiClient, tool_input: dict, **ctx) -> str:
    return _first_cards(anki, tool_input, "isdue", "get_due_cards")


@handler("get_new_cards")
def handle_get_new_cards(anki: AnkiClient, tool_input: dict, **ctx) -> str:
    return _first_cards(anki, tool_input, "isnew", "get_new_cards")
