"""Integration tests: card queries against an in-memory SQLite database."""

import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DeckSearch.search.cards import compile_for_cards, to_millis
from DeckSearch.search.parser import parse
from DeckSearch.services.search import DeckSearchService
from DeckSearch.storage import MEMORY_DB, CardStore, DatabaseManager, DeckStore, NoteStore

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
NOW_MS = to_millis(NOW)
DAY_MS = 24 * 60 * 60 * 1000


class TestCardSearch(unittest.TestCase):
    def setUp(self) -> None:
        self.db = DatabaseManager(MEMORY_DB)
        self.decks = DeckStore(self.db)
        self.notes = NoteStore(self.db)
        self.cards = CardStore(self.db)
        self.service = DeckSearchService(note_store=self.notes, card_store=self.cards)

        self.deck = self.decks.add(1, "Default")
        self.note = self.notes.add(1, {"Front": "alpha", "Back": "first letter"}, tags=["greek"])

        add = self.cards.add
        self.c_new = add(self.note.id, self.deck.id, state="new", created_at=1)
        self.c_review_due = add(
            self.note.id, self.deck.id, state="review", due=NOW_MS - DAY_MS, interval=3, created_at=2
        )
        self.c_review_future = add(
            self.note.id, self.deck.id, state="review", due=NOW_MS + 5 * DAY_MS, interval=30, created_at=3
        )
        self.c_relearn_due = add(
            self.note.id, self.deck.id, state="relearn", due=NOW_MS - 1, lapses=1, reps=5, created_at=4
        )
        self.c_learn = add(self.note.id, self.deck.id, state="learn", due=NOW_MS - DAY_MS, flag=2, created_at=5)
        self.c_susp = add(
            self.note.id, self.deck.id, state="review", due=NOW_MS - DAY_MS, suspended=True, created_at=6
        )
        self.c_buried = add(self.note.id, self.deck.id, state="new", buried=True, created_at=7)
        self.all_ids = {
            c.id
            for c in (
                self.c_new,
                self.c_review_due,
                self.c_review_future,
                self.c_relearn_due,
                self.c_learn,
                self.c_susp,
                self.c_buried,
            )
        }

    def tearDown(self) -> None:
        self.db.close()

    def ids(self, query: str, owner_id: int = 1) -> set[int]:
        result = self.service.search(owner_id, query, result_type="cards", now=NOW)
        return {card.id for card in result.items}

    def test_due(self) -> None:
        self.assertEqual(
            self.ids("is:due"),
            {self.c_new.id, self.c_review_due.id, self.c_relearn_due.id},
        )

    def test_new_and_review(self) -> None:
        self.assertEqual(self.ids("is:new"), {self.c_new.id, self.c_buried.id})
        self.assertEqual(
            self.ids("is:review"),
            {self.c_review_due.id, self.c_review_future.id, self.c_susp.id},
        )

    def test_learn_spans_two_states(self) -> None:
        self.assertEqual(self.ids("is:learn"), {self.c_learn.id, self.c_relearn_due.id})

    def test_suspended_and_buried(self) -> None:
        self.assertEqual(self.ids("is:suspended"), {self.c_susp.id})
        self.assertEqual(self.ids("is:buried"), {self.c_buried.id})
        self.assertEqual(self.ids("-is:suspended"), self.all_ids - {self.c_susp.id})

    def test_marked_follows_the_note(self) -> None:
        self.assertEqual(self.ids("is:marked"), set())
        self.assertEqual(self.ids("-is:marked"), self.all_ids)

    def test_flags(self) -> None:
        self.assertEqual(self.ids("flag:2"), {self.c_learn.id})
        self.assertEqual(self.ids("-flag:2"), self.all_ids - {self.c_learn.id})
        self.assertEqual(self.ids("flag:2 flag:0"), self.all_ids)

    def test_literal_properties(self) -> None:
        self.assertEqual(self.ids("prop:ivl>=30"), {self.c_review_future.id})
        self.assertEqual(self.ids("-prop:ivl>=30"), self.all_ids - {self.c_review_future.id})
        self.assertEqual(self.ids("prop:lapses=1 prop:reps>4"), {self.c_relearn_due.id})

    def test_due_property_is_days_from_now(self) -> None:
        self.assertEqual(self.ids("prop:due>2"), {self.c_review_future.id})
        self.assertEqual(self.ids("prop:due<=2"), self.all_ids - {self.c_review_future.id})
        self.assertEqual(self.ids("prop:due>5"), set())

    def test_note_text_applies_to_cards(self) -> None:
        self.assertEqual(self.ids("alpha"), self.all_ids)
        self.assertEqual(self.ids("tag:greek front:alp"), self.all_ids)
        self.assertEqual(self.ids("beta"), set())

    def test_decks(self) -> None:
        other = self.decks.add(1, "Other")
        extra = self.cards.add(self.note.id, other.id)
        self.assertEqual(self.ids("deck:Other"), {extra.id})
        self.assertEqual(self.ids("-deck:Other"), self.all_ids)

    def test_other_owner_sees_nothing(self) -> None:
        self.assertEqual(self.ids("", owner_id=2), set())

    def test_soft_deleted_deck_hides_cards(self) -> None:
        self.decks.soft_delete(self.deck.id)
        self.assertIsNotNone(self.decks.get(self.deck.id).deleted_at)
        self.assertEqual(self.ids(""), set())

    def test_soft_deleted_note_hides_cards(self) -> None:
        self.notes.soft_delete(self.note.id)
        self.assertEqual(self.ids(""), set())

    def test_newest_first_and_total(self) -> None:
        result = self.service.search(1, "", result_type="cards", limit=2, now=NOW)
        self.assertEqual([c.id for c in result.items], [self.c_buried.id, self.c_susp.id])
        self.assertEqual(result.total, 7)

    def test_store_rejects_note_filters(self) -> None:
        filters = compile_for_cards(parse(""), 1, now=NOW)
        with self.assertRaises(ValueError):
            self.notes.find(filters)
        self.assertEqual(self.cards.note_ids(filters), {self.note.id})

    def test_unknown_state_is_rejected_on_insert(self) -> None:
        with self.assertRaises(ValueError):
            self.cards.add(self.note.id, self.deck.id, state="graduated")


if __name__ == "__main__":
    unittest.main()
