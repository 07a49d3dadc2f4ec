"""Daily inbox decks: naming and on-demand creation."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from .client import AnkiConnectError

if TYPE_CHECKING:
    from .client import AnkiClient

logger = logging.getLogger(__name__)

DEFAULT_INBOX_PREFIX = "00_Inbox"


def today_deck_name(prefix: str = DEFAULT_INBOX_PREFIX, today: date | None = None) -> str:
    """Name of the inbox deck for a day, e.g. ``00_Inbox::2024::03::07``."""
    today = today or date.today()
    return f"{prefix}::{today.year:04d}::{today.month:02d}::{today.day:02d}"


def _is_already_exists(error: Exception) -> bool:
    return "already exists" in str(error).lower()


class DeckProvisioner:
    """Makes sure a deck exists before cards are filed into it.

    AnkiConnect has no atomic create-if-absent, so ``ensure`` checks, tries
    to create, and if creation fails for any reason other than a lost race
    looks again before giving up.

    Args:
        anki: Backend client.
        clone_config: Give each newly created deck its own options preset.
        default_config_id: Preset to clone when ``clone_config`` is set.
    """

    def __init__(self, anki: AnkiClient, clone_config: bool = False, default_config_id: int = 1):
        self.anki = anki
        self.clone_config = clone_config
        self.default_config_id = default_config_id

    def ensure(self, deck_name: str) -> bool:
        """Return True if ``deck_name`` exists once this call returns."""
        try:
            if deck_name in self.anki.deck_names():
                return True
        except AnkiConnectError as e:
            logger.warning("Could not list decks before creating %s: %s", deck_name, e)

        try:
            deck_id = self.anki.create_deck(deck_name)
        except AnkiConnectError as e:
            if _is_already_exists(e):
                logger.info("Deck %s was created concurrently", deck_name)
                return True
            logger.warning("Creating deck %s failed: %s", deck_name, e)
            return self._exists(deck_name)

        if deck_id is None:
            return self._exists(deck_name)

        logger.info("Created deck %s (ID: %s)", deck_name, deck_id)
        if self.clone_config:
            self._assign_config(deck_name)
        return True

    def _exists(self, deck_name: str) -> bool:
        try:
            return deck_name in self.anki.deck_names()
        except AnkiConnectError as e:
            logger.warning("Could not confirm deck %s exists: %s", deck_name, e)
            return False

    def _assign_config(self, deck_name: str) -> None:
        """Clone the default preset for a new deck. Failure leaves the deck as is."""
        try:
            config_id = self.anki.clone_deck_config(deck_name, self.default_config_id)
            if config_id is None:
                logger.warning(
                    "Options preset %s not found; %s keeps the default preset",
                    self.default_config_id, deck_name,
                )
                return
            self.anki.set_deck_config_id([deck_name], config_id)
        except AnkiConnectError as e:
            logger.warning("Could not assign an options preset to %s: %s", deck_name, e)
