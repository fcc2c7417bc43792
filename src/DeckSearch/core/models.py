from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

CARD_STATES = ("new", "learn", "review", "relearn")
LEARNING_STATES = ("learn", "relearn")


@dataclass(frozen=True, slots=True)
class Deck:
    """A named deck owned by one user.

    Attributes:
        id: Database identifier.
        user_id: Owning user.
        name: Deck name as shown to the user.
        created_at: Creation time in epoch milliseconds.
        deleted_at: Soft-delete time, or None while the deck is live.
    """

    id: int
    user_id: int
    name: str
    created_at: int
    deleted_at: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Note:
    """A note: the content shared by one or more cards.

    Attributes:
        id: Database identifier.
        user_id: Owning user.
        guid: Globally unique identifier used for sync and export.
        note_type_id: Note type the fields belong to, if known.
        fields: Field name -> field content (e.g. ``{"Front": ..., "Back": ...}``).
        tags: Tags in insertion order.
        marked: Note-level "marked" flag.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds.
        deleted_at: Soft-delete time, or None while the note is live.
    """

    id: int
    user_id: int
    guid: str
    note_type_id: Optional[int]
    fields: Mapping[str, str]
    tags: Sequence[str] = ()
    marked: bool = False
    created_at: int = 0
    updated_at: int = 0
    deleted_at: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True, slots=True)
class Card:
    """A reviewable card generated from a note.

    Scheduling values are precomputed by the scheduler; search only reads them.

    Attributes:
        id: Database identifier.
        note_id: Owning note.
        deck_id: Current deck.
        home_deck_id: Original deck while the card sits in a filtered deck.
        due: Due moment in epoch milliseconds.
        interval: Current interval in days.
        ease: Ease factor.
        lapses: Number of times the card was forgotten.
        reps: Number of reviews.
        state: One of ``CARD_STATES``.
        position: New-queue position.
        flag: Flag number, 0 (none) to 7.
        suspended: Excluded from reviews.
        buried: Hidden until the next day.
        stability: Memory stability, if the scheduler tracks it.
        difficulty: Memory difficulty, if the scheduler tracks it.
        last_review_at: Last review in epoch milliseconds.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds.
    """

    id: int
    note_id: int
    deck_id: int
    home_deck_id: Optional[int] = None
    due: int = 0
    interval: int = 0
    ease: float = 2.5
    lapses: int = 0
    reps: int = 0
    state: str = "new"
    position: int = 0
    flag: int = 0
    suspended: bool = False
    buried: bool = False
    stability: Optional[float] = None
    difficulty: Optional[float] = None
    last_review_at: Optional[int] = None
    created_at: int = 0
    updated_at: int = 0
