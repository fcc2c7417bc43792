"""Base classes for output writers.

Writers receive each search result and may buffer until ``finalize``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from DeckSearch.services.search import SearchResult


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_result(self, result: SearchResult, raw_query: str) -> None:
        """Write one search result.

        Args:
            result: Page of matches plus total.
            raw_query: Query string as the user typed it.
        """

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., write accumulated results to file).

        Args:
            action: The CLI command name (e.g., 'search').
        """


@dataclass(slots=True)
class MultiOutputWriter(OutputWriter):
    """Delegate output to multiple writers."""

    writers: Sequence[OutputWriter]

    def write_result(self, result: SearchResult, raw_query: str) -> None:
        for writer in self.writers:
            writer.write_result(result, raw_query)

    def finalize(self, action: str) -> None:
        for writer in self.writers:
            writer.finalize(action)
