"""Tests for the query tokenizer."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DeckSearch.search.tokenizer import tokenize


class TestTokenize(unittest.TestCase):
    def test_quoted_runs_stay_in_one_token(self) -> None:
        tokens = tokenize('deck:"Spanish Verbs" -"hola amigo" tag:verb AND is:due')
        self.assertEqual(tokens, ['deck:"Spanish Verbs"', '-"hola amigo"', "tag:verb", "is:due"])

    def test_any_whitespace_splits(self) -> None:
        self.assertEqual(tokenize("a  b\tc\nd"), ["a", "b", "c", "d"])

    def test_empty_input(self) -> None:
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize("   "), [])

    def test_empty_phrase_is_dropped(self) -> None:
        self.assertEqual(tokenize('""'), [])
        self.assertEqual(tokenize('a "" b'), ["a", "b"])

    def test_unterminated_quote_keeps_text(self) -> None:
        self.assertEqual(tokenize('foo "bar baz'), ["foo", "bar baz"])

    def test_and_is_dropped_in_any_case(self) -> None:
        self.assertEqual(tokenize("and AND And x"), ["x"])

    def test_or_is_kept(self) -> None:
        self.assertEqual(tokenize("a OR b"), ["a", "OR", "b"])

    def test_quote_inside_token_continues_it(self) -> None:
        self.assertEqual(tokenize('nc:"Sao Paulo" x'), ['nc:"Sao Paulo"', "x"])


if __name__ == "__main__":
    unittest.main()
