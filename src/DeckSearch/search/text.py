"""Text normalization shared by the compilers and the SQLite functions.

The compilers normalize search parameters in Python and the storage layer
registers the same functions on its connection, so both sides of every
comparison go through identical code.
"""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache


def fold_text(value: str | None) -> str | None:
    """Return a case-folded copy of ``value`` (None passes through)."""
    if value is None:
        return None
    return str(value).casefold()


def strip_combining(value: str) -> str:
    """Remove combining marks (accents, diacritics) from ``value``.

    Case is preserved, so the result is still usable as a regex pattern.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFKC", stripped)


def unaccent_text(value: str | None) -> str | None:
    """Return the accent- and case-insensitive form of ``value``."""
    if value is None:
        return None
    return strip_combining(str(value)).casefold()


@lru_cache(maxsize=256)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def regexp_match(pattern: str | None, value: str | None) -> int:
    """SQL ``regexp(pattern, value)``: 1 when ``pattern`` is found in ``value``."""
    if pattern is None or value is None:
        return 0
    return 1 if _compiled(pattern).search(str(value)) else 0
