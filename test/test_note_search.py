"""Integration tests: note queries against an in-memory SQLite database."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DeckSearch.core.errors import CompileError
from DeckSearch.services.search import DeckSearchService
from DeckSearch.storage import MEMORY_DB, CardStore, DatabaseManager, DeckStore, NoteStore


class NoteSearchTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = DatabaseManager(MEMORY_DB)
        self.decks = DeckStore(self.db)
        self.notes = NoteStore(self.db)
        self.cards = CardStore(self.db)
        self.service = DeckSearchService(note_store=self.notes, card_store=self.cards)

        spanish = self.decks.add(1, "Spanish")
        french = self.decks.add(1, "French")
        other_user_deck = self.decks.add(2, "Spanish")

        self.n1 = self.notes.add(1, {"Front": "a1", "Back": "uno"}, tags=["verb"], created_at=1000)
        self.n2 = self.notes.add(1, {"Front": "b1", "Back": "dos"}, tags=["Noun"], created_at=2000)
        self.n3 = self.notes.add(
            1, {"Front": "c1", "Back": "café au lait"}, tags=["verb", "food"], marked=True, created_at=3000
        )
        self.n4 = self.notes.add(1, {"Front": "d1", "Back": "The dog barks"}, created_at=4000)
        self.n5 = self.notes.add(1, {"Front": "50% off", "Back": "sale_item"}, created_at=5000)
        self.n6 = self.notes.add(2, {"Front": "a1", "Back": "uno"}, tags=["verb"], created_at=6000)

        self.cards.add(self.n1.id, spanish.id, flag=1)
        self.cards.add(self.n2.id, spanish.id, suspended=True)
        self.cards.add(self.n3.id, spanish.id)
        self.cards.add(self.n4.id, french.id)
        self.cards.add(self.n5.id, spanish.id)
        self.cards.add(self.n6.id, other_user_deck.id, flag=1)

    def tearDown(self) -> None:
        self.db.close()

    def ids(self, query: str) -> list[int]:
        return [note.id for note in self.service.search(1, query).items]


class TestNoteSearch(NoteSearchTestCase):
    def test_empty_query_returns_all_owned_notes_newest_first(self) -> None:
        result = self.service.search(1, "")
        self.assertEqual(
            [n.id for n in result.items],
            [self.n5.id, self.n4.id, self.n3.id, self.n2.id, self.n1.id],
        )
        self.assertEqual(result.total, 5)

    def test_field_regex(self) -> None:
        self.assertEqual(self.ids("front:re:[a-c]1"), [self.n3.id, self.n2.id, self.n1.id])

    def test_invalid_regex(self) -> None:
        with self.assertRaises(CompileError) as ctx:
            self.service.search(1, "re:[invalid")
        self.assertIn("invalid regex pattern", str(ctx.exception))

    def test_no_combining(self) -> None:
        self.assertEqual(self.ids("nc:cafe"), [self.n3.id])
        self.assertEqual(self.ids("nc:CAFÉ"), [self.n3.id])
        self.assertEqual(self.ids("cafe"), [])

    def test_plain_text_is_case_insensitive(self) -> None:
        self.assertEqual(self.ids("DOG"), [self.n4.id])

    def test_negated_text(self) -> None:
        self.assertEqual(self.ids("-dog"), [self.n5.id, self.n3.id, self.n2.id, self.n1.id])

    def test_exact_phrase(self) -> None:
        self.assertEqual(self.ids('"dog barks"'), [self.n4.id])
        self.assertEqual(self.ids('"barks dog"'), [])

    def test_like_metacharacters_are_literal(self) -> None:
        self.assertEqual(self.ids("50%"), [self.n5.id])
        self.assertEqual(self.ids('"50% off"'), [self.n5.id])

    def test_wildcard(self) -> None:
        self.assertEqual(self.ids("d*s"), [self.n4.id, self.n2.id])
        self.assertEqual(self.ids("e_i"), [self.n5.id])

    def test_word_boundary(self) -> None:
        self.assertEqual(self.ids("w:dog"), [self.n4.id])
        self.assertEqual(self.ids("w:do"), [])
        self.assertEqual(self.ids("w:bark*"), [self.n4.id])

    def test_tags_are_case_insensitive(self) -> None:
        self.assertEqual(self.ids("tag:VERB"), [self.n3.id, self.n1.id])
        self.assertEqual(self.ids("tag:noun tag:food"), [self.n3.id, self.n2.id])
        self.assertEqual(self.ids("-tag:verb"), [self.n5.id, self.n4.id, self.n2.id])

    def test_decks(self) -> None:
        self.assertEqual(self.ids("deck:French"), [self.n4.id])
        self.assertEqual(self.ids("deck:french"), [])
        self.assertEqual(self.ids("-deck:Spanish"), [self.n4.id])

    def test_marked(self) -> None:
        self.assertEqual(self.ids("is:marked"), [self.n3.id])
        self.assertEqual(self.ids("-is:marked"), [self.n5.id, self.n4.id, self.n2.id, self.n1.id])

    def test_field_searches(self) -> None:
        self.assertEqual(self.ids("front:a1"), [self.n1.id])
        self.assertEqual(self.ids("FRONT:A1"), [self.n1.id])
        self.assertEqual(self.ids("field:Back:uno"), [self.n1.id])
        self.assertEqual(self.ids("-front:a1"), [self.n5.id, self.n4.id, self.n3.id, self.n2.id])

    def test_terms_are_anded(self) -> None:
        self.assertEqual(self.ids("tag:verb is:marked"), [self.n3.id])
        self.assertEqual(self.ids("tag:verb dog"), [])

    def test_card_filters_restrict_notes(self) -> None:
        result = self.service.search(1, "is:suspended")
        self.assertEqual([n.id for n in result.items], [self.n2.id])
        self.assertEqual(result.total, 1)
        self.assertEqual(self.ids("flag:1"), [self.n1.id])
        self.assertEqual(self.ids("flag:1 tag:noun"), [])

    def test_pagination(self) -> None:
        result = self.service.search(1, "", limit=2, offset=1)
        self.assertEqual([n.id for n in result.items], [self.n4.id, self.n3.id])
        self.assertEqual(result.total, 5)

    def test_soft_deleted_notes_are_hidden(self) -> None:
        self.assertTrue(self.notes.soft_delete(self.n5.id))
        self.assertFalse(self.notes.soft_delete(self.n5.id))
        self.assertEqual(self.service.search(1, "").total, 4)

    def test_other_owner(self) -> None:
        self.assertEqual([n.id for n in self.service.search(2, "tag:verb").items], [self.n6.id])

    def test_round_trip_of_stored_note(self) -> None:
        (note,) = self.service.search(1, "is:marked").items
        self.assertEqual(dict(note.fields), {"Front": "c1", "Back": "café au lait"})
        self.assertEqual(note.tags, ("verb", "food"))
        self.assertTrue(note.marked)


if __name__ == "__main__":
    unittest.main()
