"""Helpers shared by the SQLite stores."""

from __future__ import annotations

import time

from DeckSearch.search.filters import FilterSet

NO_LIMIT = -1


def now_millis() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def ensure_entity(filters: FilterSet, expected: str) -> None:
    """Reject a filter set compiled for another entity.

    Raises:
        ValueError: If ``filters.entity`` is not ``expected``.
    """
    if filters.entity != expected:
        raise ValueError(f"Filter set compiled for {filters.entity} cannot query {expected}")


def page_params(limit: int | None, offset: int) -> tuple[int, int]:
    """Return ``(limit, offset)`` for a ``LIMIT ? OFFSET ?`` clause.

    ``None`` means every row; negative offsets are clamped to 0.
    """
    return (NO_LIMIT if limit is None else limit, max(offset, 0))
