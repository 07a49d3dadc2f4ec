"""AnkiConnect client for interacting with Anki desktop."""

import http.client
import json
import urllib.error
import urllib.request
from typing import Any, Callable

from .models import CardInfo, UnknownCard, UnparsedResponse

ANKI_CONNECT_URL = "http://localhost:8765"
ANKI_CONNECT_VERSION = 6


class AnkiConnectError(Exception):
    """Base exception for AnkiConnect errors."""
    pass


class ConnectionError(AnkiConnectError):
    """Could not connect to AnkiConnect."""
    pass


class ResponseDecodeError(AnkiConnectError):
    """AnkiConnect answered with a body that is not a JSON envelope."""

    def __init__(self, action: str, text: str):
        super().__init__(f"Invalid response from AnkiConnect for action '{action}': {text[:200]}")
        self.action = action
        self.text = text


class AnkiClient:
    """Client for interacting with Anki via AnkiConnect.

    Args:
        url: AnkiConnect endpoint.
        timeout: Socket timeout in seconds for each request.
        loads: Deserializer applied to every response body. It may either
            raise ``json.JSONDecodeError`` or return an ``UnparsedResponse``
            for bodies it cannot decode.
    """

    def __init__(
        self,
        url: str = ANKI_CONNECT_URL,
        timeout: float = 10,
        loads: Callable[[str], Any] = json.loads,
    ):
        self.url = url
        self.timeout = timeout
        self._loads = loads

    def _request(self, action: str, **params) -> Any:
        """Make a request to AnkiConnect."""
        payload = json.dumps({
            "action": action,
            "version": ANKI_CONNECT_VERSION,
            "params": params,
        }).encode("utf-8")

        try:
            req = urllib.request.Request(self.url, payload)
            req.add_header("Content-Type", "application/json")
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8", errors="replace")
        except urllib.error.URLError as e:
            raise ConnectionError(
                "Cannot connect to Anki. Make sure Anki is running with AnkiConnect installed."
            ) from e
        except TimeoutError as e:
            raise ConnectionError(
                f"Anki is not responding (timed out after {self.timeout}s). "
                "Check if Anki is frozen or busy syncing."
            ) from e
        except (OSError, http.client.HTTPException) as e:
            raise ConnectionError(f"Connection to AnkiConnect failed: {e}") from e

        try:
            parsed = self._loads(raw)
        except json.JSONDecodeError as e:
            raise ResponseDecodeError(action, raw) from e

        if isinstance(parsed, UnparsedResponse):
            raise ResponseDecodeError(action, parsed.text)
        if not isinstance(parsed, dict):
            raise ResponseDecodeError(action, raw)

        if parsed.get("error"):
            raise AnkiConnectError(str(parsed["error"]))

        return parsed.get("result")

    def _request_list(self, action: str, **params) -> list:
        """Make a request whose result must be a list (null counts as empty)."""
        result = self._request(action, **params)
        if result is None:
            return []
        if not isinstance(result, list):
            raise ResponseDecodeError(action, repr(result))
        return result

    def version(self) -> int | None:
        """Return the AnkiConnect API version."""
        return self._request("version")

    def ping(self) -> bool:
        """Check if AnkiConnect is available."""
        try:
            return self.version() is not None
        except AnkiConnectError:
            return False

    # ------------------------------------------------------------------
    # Decks
    # ------------------------------------------------------------------

    def deck_names(self) -> list[str]:
        """List the names of all decks."""
        return self._request_list("deckNames")

    def create_deck(self, name: str) -> int | None:
        """Create a deck and return its ID.

        Parent decks in a ``::`` separated name are created as needed.
        """
        return self._request("createDeck", deck=name)

    def clone_deck_config(self, name: str, clone_from: int) -> int | None:
        """Clone an options preset, returning the new preset ID."""
        config_id = self._request("cloneDeckConfigId", name=name, cloneFrom=clone_from)
        # AnkiConnect reports a missing source preset as `false`
        if config_id is False:
            return None
        return config_id

    def set_deck_config_id(self, decks: list[str], config_id: int) -> bool:
        """Assign an options preset to the given decks."""
        return bool(self._request("setDeckConfigId", decks=decks, configId=config_id))

    # ------------------------------------------------------------------
    # Cards and notes
    # ------------------------------------------------------------------

    def find_cards(self, query: str) -> list[int]:
        """Find card IDs matching an Anki search query."""
        return self._request_list("findCards", query=query)

    def cards_info(self, card_ids: list[int]) -> list[CardInfo | UnknownCard]:
        """Fetch card records for the given IDs."""
        if not card_ids:
            return []
        info = self._request_list("cardsInfo", cards=card_ids)
        return [CardInfo.from_response(entry) for entry in info]

    def add_note(
        self,
        deck_name: str,
        fields: dict[str, str],
        model_name: str = "Basic",
        tags: list[str] | None = None,
    ) -> int | None:
        """
        Add a note to a deck.

        Returns:
            The note ID, or None if Anki did not create one
        """
        note = {
            "deckName": deck_name,
            "modelName": model_name,
            "fields": fields,
            "tags": tags or [],
        }
        return self._request("addNote", note=note)

    def answer_cards(self, answers: list[dict]) -> list[bool]:
        """Answer cards with the given eases.

        Args:
            answers: List of {"cardId": int, "ease": int} dicts.

        Returns:
            One boolean per answer, in the same order.
        """
        result = self._request("answerCards", answers=answers)
        if not isinstance(result, list):
            return []
        return [r is True for r in result]
