"""JSON output.

Renders search results into JSON-serializable objects and provides the
JsonFileWriter implementation for command output.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from DeckSearch.core.models import Card, Note
from DeckSearch.renderers.base import OutputWriter
from DeckSearch.services.search import SearchResult
from DeckSearch.utils.log import log


def render_note(note: Note) -> dict[str, Any]:
    return {
        "id": note.id,
        "guid": note.guid,
        "note_type_id": note.note_type_id,
        "fields": dict(note.fields),
        "tags": list(note.tags),
        "marked": note.marked,
        "created_at": note.created_at,
        "updated_at": note.updated_at,
    }


def render_card(card: Card) -> dict[str, Any]:
    return asdict(card)


def render_json(result: SearchResult, raw_query: str) -> dict[str, Any]:
    """Render one result page into a JSON-serializable dict.

    Args:
        result: Search result.
        raw_query: Query string as typed.

    Returns:
        Query, parsed model, total and the rendered items.
    """
    render = render_card if result.result_type == "cards" else render_note
    return {
        "query": raw_query,
        "parsed": result.query.to_dict(),
        "result_type": result.result_type,
        "total": result.total,
        "items": [render(item) for item in result.items],
    }


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to JSON file on finalize."""

    def __init__(self, base_dir: str) -> None:
        """Initialize JSON writer.

        Args:
            base_dir: Base output directory; files land in ``<base_dir>/json``.
        """
        self.output_dir = Path(base_dir) / "json"
        self.all_results: list[dict[str, Any]] = []
        self.output_path: Path | None = None

    def write_result(self, result: SearchResult, raw_query: str) -> None:
        self.all_results.append(render_json(result, raw_query))

    def finalize(self, action: str) -> None:
        """Write accumulated results to ``<action>_<timestamp>.json``."""
        payload = json.dumps(self.all_results, ensure_ascii=False, indent=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.output_path = self.output_dir / f"{action}_{timestamp}.json"
        self.output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", self.output_path)
