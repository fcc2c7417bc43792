"""Console text output.

Renders notes and cards as short text blocks logged line by line.
"""

from __future__ import annotations

from datetime import datetime, timezone

from DeckSearch.core.models import Card, Note
from DeckSearch.renderers.base import OutputWriter
from DeckSearch.services.search import SearchResult
from DeckSearch.utils.log import log

_PREVIEW_CHARS = 60


def _fmt_ms(value: int | None) -> str:
    """Format epoch milliseconds as ``YYYY-mm-dd``, or "-" when unset."""
    if not value:
        return "-"
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def _preview(note: Note) -> str:
    first = next(iter(note.fields.values()), "")
    text = " ".join(str(first).split())
    return text if len(text) <= _PREVIEW_CHARS else text[: _PREVIEW_CHARS - 3] + "..."


def render_note(idx: int, note: Note) -> list[str]:
    lines = [f"{idx}. [note {note.id}] {_preview(note)}"]
    if note.tags:
        lines.append(f"   Tags: {' '.join(note.tags)}")
    if note.marked:
        lines.append("   Marked")
    lines.append(f"   Created: {_fmt_ms(note.created_at)}")
    return lines


def render_card(idx: int, card: Card) -> list[str]:
    status = card.state
    if card.suspended:
        status += ", suspended"
    if card.buried:
        status += ", buried"
    lines = [f"{idx}. [card {card.id}] note={card.note_id} deck={card.deck_id} ({status})"]
    lines.append(
        f"   Due: {_fmt_ms(card.due)}  Ivl: {card.interval}d  Lapses: {card.lapses}  Reps: {card.reps}"
    )
    if card.flag:
        lines.append(f"   Flag: {card.flag}")
    return lines


def render_text(result: SearchResult) -> str:
    """Render one result page into a human-readable text block.

    Args:
        result: Search result.

    Returns:
        A formatted string ready to be printed.
    """
    lines = [f"{result.total} {result.result_type} matched, showing {len(result.items)}"]
    for idx, item in enumerate(result.items, start=1):
        if isinstance(item, Card):
            lines.extend(render_card(idx, item))
        else:
            lines.extend(render_note(idx, item))
    return "\n".join(lines) + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_result(self, result: SearchResult, raw_query: str) -> None:
        log.info("query=%s", raw_query)
        for line in render_text(result).splitlines():
            log.info(line)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
