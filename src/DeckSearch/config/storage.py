"""Storage domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from DeckSearch.config.common import check_non_empty, get_section, read_value


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Storage configuration."""

    db_path: str


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    section = get_section(raw, "storage")
    return StorageConfig(db_path=read_value(section, "storage", "db_path", str))


def check_storage(config: StorageConfig) -> None:
    check_non_empty(config.db_path, "storage.db_path")
