"""Translating resource filters to Anki searches and fetching the results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .content import clean_html
from .models import Card, UnknownCard

if TYPE_CHECKING:
    from .client import AnkiClient

logger = logging.getLogger(__name__)


def format_query(query: str) -> str:
    """Turn a resource filter such as ``isdue`` into an Anki search.

    ``deck<rest>`` becomes ``deck:<rest>`` and ``is<rest>`` becomes
    ``is:<rest>``. Anything else is assumed to already be Anki syntax.
    """
    if query.startswith("deck"):
        return f"deck:{query[4:]}"
    if query.startswith("is"):
        return f"is:{query[2:]}"
    return query


def find_cards_and_order(anki: AnkiClient, query: str) -> list[Card]:
    """Return cards matching a filter, cleaned and ordered by due."""
    card_ids = anki.find_cards(format_query(query))
    cards = []
    for info in anki.cards_info(card_ids):
        if isinstance(info, UnknownCard):
            logger.warning("Skipping unreadable card record: %r", info.raw)
            continue
        cards.append(Card(
            card_id=info.card_id,
            question=clean_html(info.question),
            answer=clean_html(info.answer),
            due=info.due,
        ))
    cards.sort(key=lambda c: c.due)
    return cards
