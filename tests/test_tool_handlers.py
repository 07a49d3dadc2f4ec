"""Tests for tool_handlers module - handler registry and tool behavior."""

import inspect
import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from ankimcp.client import AnkiConnectError
from ankimcp.config import Config
from ankimcp.decks import DeckProvisioner
from ankimcp.models import CardInfo
from ankimcp.tool_handlers import HANDLERS, InvalidRequestError, ToolError, handler
from ankimcp.tools import ANKI_TOOLS

TODAY = date(2024, 3, 7)


class TestHandlerRegistry:
    """Tests for the handler decorator and HANDLERS dict."""

    def test_handler_decorator_registers(self):
        """The @handler decorator should add to HANDLERS."""
        original_len = len(HANDLERS)

        @handler("__test_dummy__")
        def dummy(anki, tool_input, **ctx):
            pass

        assert HANDLERS["__test_dummy__"] is dummy

        # Clean up
        del HANDLERS["__test_dummy__"]
        assert len(HANDLERS) == original_len

    def test_all_handlers_accept_anki_and_tool_input(self):
        """Every handler should accept at least (anki, tool_input, **ctx)."""
        for name, fn in HANDLERS.items():
            params = list(inspect.signature(fn).parameters.keys())
            assert len(params) >= 2, f"Handler '{name}' has too few parameters: {params}"

    def test_every_tool_has_handler(self):
        tool_names = {t["name"] for t in ANKI_TOOLS}
        assert tool_names == set(HANDLERS.keys())

    def test_invalid_request_is_tool_error(self):
        assert issubclass(InvalidRequestError, ToolError)


def _ctx(anki, prefix="00_Inbox"):
    return {
        "config": Config(inbox_prefix=prefix),
        "provisioner": DeckProvisioner(anki),
        "today": TODAY,
    }


class TestUpdateCards:
    """Tests for the update_cards tool."""

    def test_all_succeed(self):
        anki = MagicMock()
        anki.answer_cards.return_value = [True, True]
        answers = [{"cardId": 1, "ease": 3}, {"cardId": 2, "ease": 4}]
        result = HANDLERS["update_cards"](anki, {"answers": answers})
        assert result == "Updated cards 1, 2"
        anki.answer_cards.assert_called_once_with(answers)

    def test_partial_failure_names_failed_cards(self):
        anki = MagicMock()
        anki.answer_cards.return_value = [True, False]
        answers = [{"cardId": 1, "ease": 2}, {"cardId": 2, "ease": 9}]
        with pytest.raises(ToolError, match=r"^Failed to update cards with IDs: 2$"):
            HANDLERS["update_cards"](anki, {"answers": answers})

    def test_missing_results_count_as_failed(self):
        anki = MagicMock()
        anki.answer_cards.return_value = []
        answers = [{"cardId": 1, "ease": 3}, {"cardId": 2, "ease": 3}]
        with pytest.raises(ToolError, match="1, 2"):
            HANDLERS["update_cards"](anki, {"answers": answers})

    def test_float_ids_become_ints(self):
        anki = MagicMock()
        anki.answer_cards.return_value = [True]
        HANDLERS["update_cards"](anki, {"answers": [{"cardId": 1498938915662.0, "ease": 3.0}]})
        anki.answer_cards.assert_called_once_with([{"cardId": 1498938915662, "ease": 3}])

    def test_missing_answers(self):
        with pytest.raises(InvalidRequestError, match="answers"):
            HANDLERS["update_cards"](MagicMock(), {"other": 1})

    def test_answers_not_a_list(self):
        with pytest.raises(InvalidRequestError):
            HANDLERS["update_cards"](MagicMock(), {"answers": "1:3"})

    def test_answer_missing_ease(self):
        anki = MagicMock()
        with pytest.raises(InvalidRequestError, match="ease"):
            HANDLERS["update_cards"](anki, {"answers": [{"cardId": 1}]})
        anki.answer_cards.assert_not_called()

    def test_backend_error_propagates(self):
        anki = MagicMock()
        anki.answer_cards.side_effect = AnkiConnectError("collection is not available")
        with pytest.raises(AnkiConnectError):
            HANDLERS["update_cards"](anki, {"answers": [{"cardId": 1, "ease": 3}]})


class TestAddCard:
    """Tests for the add_card tool."""

    def _anki(self, decks=None, note_id=1496198395707, card_ids=None):
        anki = MagicMock()
        anki.deck_names.return_value = decks or ["Default"]
        anki.create_deck.return_value = 1519323742721
        anki.add_note.return_value = note_id
        anki.find_cards.return_value = [1498938915662] if card_ids is None else card_ids
        return anki

    def test_creates_deck_and_card(self):
        anki = self._anki()
        result = HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki))
        assert result == "Created card with id 1498938915662 in deck 00_Inbox::2024::03::07"
        anki.create_deck.assert_called_once_with("00_Inbox::2024::03::07")
        anki.add_note.assert_called_once_with(
            "00_Inbox::2024::03::07", {"Front": "Q", "Back": "A"}, model_name="Basic"
        )
        anki.find_cards.assert_called_once_with("nid:1496198395707")

    def test_existing_deck_not_recreated(self):
        anki = self._anki(decks=["00_Inbox::2024::03::07"])
        HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki))
        anki.create_deck.assert_not_called()

    def test_custom_prefix(self):
        anki = self._anki()
        result = HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki, prefix="Inbox"))
        assert result.endswith("in deck Inbox::2024::03::07")

    def test_provisioning_failure(self):
        anki = self._anki()
        anki.deck_names.return_value = []
        anki.create_deck.side_effect = AnkiConnectError("collection is busy")
        with pytest.raises(ToolError, match="Failed to create deck: 00_Inbox::2024::03::07"):
            HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki))
        anki.add_note.assert_not_called()

    def test_note_not_created(self):
        anki = self._anki(note_id=None)
        with pytest.raises(ToolError, match="Failed to add note to Anki"):
            HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki))

    def test_card_lookup_empty(self):
        anki = self._anki(card_ids=[])
        result = HANDLERS["add_card"](anki, {"front": "Q", "back": "A"}, **_ctx(anki))
        assert "Created note 1496198395707" in result

    def test_missing_back(self):
        anki = self._anki()
        with pytest.raises(InvalidRequestError, match="back"):
            HANDLERS["add_card"](anki, {"front": "Q"}, **_ctx(anki))
        anki.create_deck.assert_not_called()


class TestGetCards:
    """Tests for get_due_cards and get_new_cards."""

    def _anki(self):
        anki = MagicMock()
        anki.find_cards.return_value = [1, 2, 3]
        anki.cards_info.return_value = [
            CardInfo(card_id=1, question="Q1", answer="A1", due=30),
            CardInfo(card_id=2, question="Q2", answer="A2", due=10),
            CardInfo(card_id=3, question="<b>Q3</b>", answer="A3", due=20),
        ]
        return anki

    def test_due_cards_truncated_in_due_order(self):
        anki = self._anki()
        cards = json.loads(HANDLERS["get_due_cards"](anki, {"num": 2}))
        assert cards == [
            {"cardId": 2, "question": "Q2", "answer": "A2", "due": 10},
            {"cardId": 3, "question": "Q3", "answer": "A3", "due": 20},
        ]
        anki.find_cards.assert_called_once_with("is:due")

    def test_new_cards_query(self):
        anki = self._anki()
        HANDLERS["get_new_cards"](anki, {"num": 1})
        anki.find_cards.assert_called_once_with("is:new")

    def test_num_larger_than_results(self):
        cards = json.loads(HANDLERS["get_due_cards"](self._anki(), {"num": 10}))
        assert [c["cardId"] for c in cards] == [2, 3, 1]

    def test_num_as_string(self):
        cards = json.loads(HANDLERS["get_due_cards"](self._anki(), {"num": "1"}))
        assert len(cards) == 1

    def test_negative_num_returns_nothing(self):
        assert json.loads(HANDLERS["get_due_cards"](self._anki(), {"num": -1})) == []

    @pytest.mark.parametrize("num", ["many", None, True, float("nan")])
    def test_bad_num(self, num):
        with pytest.raises(InvalidRequestError):
            HANDLERS["get_due_cards"](self._anki(), {"num": num})
