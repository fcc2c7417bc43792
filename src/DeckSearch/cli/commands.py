"""Command implementations for the DeckSearch CLI.

Business logic for commands, separated from CLI parameter handling and
output formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from DeckSearch.renderers import OutputWriter
from DeckSearch.services.search import DeckSearchService, SearchResult
from DeckSearch.utils.log import log


@dataclass(slots=True)
class SearchCommand:
    """Run one DSL query and hand the page to the output writer."""

    search_service: DeckSearchService
    output_writer: OutputWriter
    query: str
    owner_id: int
    result_type: str
    limit: int = 0
    offset: int = 0
    now: datetime | None = None

    def execute(self) -> SearchResult:
        log.debug(
            "Running search owner=%s type=%s limit=%s offset=%s query=%r",
            self.owner_id,
            self.result_type,
            self.limit,
            self.offset,
            self.query,
        )
        result = self.search_service.search(
            self.owner_id,
            self.query,
            result_type=self.result_type,
            limit=self.limit,
            offset=self.offset,
            now=self.now,
        )
        self.output_writer.write_result(result, self.query)
        return result
