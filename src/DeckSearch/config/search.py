"""Search domain configuration: paging limits and default result type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from DeckSearch.config.common import get_section, read_value

RESULT_TYPES = ("notes", "cards")


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Store validated search settings.

    Attributes:
        default_limit: Page size used when a caller passes no positive limit.
        max_limit: Upper bound for any requested page size.
        result_type: Entity searched when the caller does not choose one.
    """

    default_limit: int
    max_limit: int
    result_type: str


def load_search(raw: Mapping[str, Any]) -> SearchConfig:
    """Load search domain config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed search configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "search")
    return SearchConfig(
        default_limit=read_value(section, "search", "default_limit", int),
        max_limit=read_value(section, "search", "max_limit", int),
        result_type=read_value(section, "search", "result_type", str).lower(),
    )


def check_search(config: SearchConfig) -> None:
    """Validate search domain constraints.

    Raises:
        ValueError: If values violate search constraints.
    """
    if config.default_limit <= 0:
        raise ValueError("search.default_limit must be positive")
    if config.max_limit < config.default_limit:
        raise ValueError("search.max_limit must be >= search.default_limit")
    if config.result_type not in RESULT_TYPES:
        raise ValueError(f"search.result_type must be one of {list(RESULT_TYPES)}")
