"""Public configuration API for DeckSearch."""

from __future__ import annotations

from DeckSearch.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from DeckSearch.config.output import OutputConfig
from DeckSearch.config.runtime import RuntimeConfig
from DeckSearch.config.search import RESULT_TYPES, SearchConfig
from DeckSearch.config.storage import StorageConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RESULT_TYPES",
    "RuntimeConfig",
    "SearchConfig",
    "StorageConfig",
    "OutputConfig",
    "AppConfig",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
