"""Data models for the Anki MCP server."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Card:
    """A normalized card as returned to MCP clients."""

    card_id: int
    question: str
    answer: str
    due: float

    def to_dict(self) -> dict:
        return {
            "cardId": self.card_id,
            "question": self.question,
            "answer": self.answer,
            "due": self.due,
        }


@dataclass(frozen=True)
class CardInfo:
    """A card record as reported by AnkiConnect's cardsInfo."""

    card_id: int
    question: str
    answer: str
    due: float

    @classmethod
    def from_response(cls, data: Any) -> "CardInfo | UnknownCard":
        """Build a record from one cardsInfo entry.

        Entries for deleted or unknown card IDs come back as empty objects;
        those, and anything else missing the fields we need, become an
        UnknownCard rather than a half-filled CardInfo.
        """
        if not isinstance(data, dict):
            return UnknownCard(raw=data)
        card_id = data.get("cardId")
        due = data.get("due")
        if not isinstance(card_id, int) or isinstance(due, bool) or not isinstance(due, (int, float)):
            return UnknownCard(raw=data)
        return cls(
            card_id=card_id,
            question=str(data.get("question") or ""),
            answer=str(data.get("answer") or ""),
            due=due,
        )


@dataclass(frozen=True)
class UnknownCard:
    """A cardsInfo entry that could not be interpreted."""

    raw: Any


@dataclass(frozen=True)
class UnparsedResponse:
    """Stand-in for a backend body that was not valid JSON."""

    text: str
