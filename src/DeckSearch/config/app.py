"""Application config orchestration and YAML loading entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from DeckSearch.config.output import OutputConfig, check_output, load_output
from DeckSearch.config.runtime import RuntimeConfig, check_runtime, load_runtime
from DeckSearch.config.search import SearchConfig, check_search, load_search
from DeckSearch.config.storage import StorageConfig, check_storage, load_storage

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    search: SearchConfig
    output: OutputConfig
    storage: StorageConfig


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    search = load_search(raw)
    output = load_output(raw)
    storage = load_storage(raw)

    check_runtime(runtime)
    check_search(search)
    check_output(output)
    check_storage(storage)

    return AppConfig(runtime=runtime, search=search, output=output, storage=storage)


def load_config_with_defaults(
    config_path: Path | None = None, default_path: Path = DEFAULT_CONFIG_PATH
) -> AppConfig:
    """Load config by merging the defaults and an optional override file.

    Args:
        config_path: Override YAML; None uses the defaults alone.
        default_path: Base YAML holding every required key.

    Returns:
        Validated application configuration.
    """
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path is None or config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
