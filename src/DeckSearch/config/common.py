"""Typed readers for the config sections.

Every DeckSearch section ships with defaults in ``default.yml``, so a missing
section or key after merging is always an error.
"""

from __future__ import annotations

from typing import Any, Mapping

_KIND_NAMES = {str: "a string", bool: "a boolean", int: "an integer"}


def get_section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return section ``name`` of the root config.

    Raises:
        ValueError: If the section is missing.
        TypeError: If the section is not a mapping.
    """
    section = raw.get(name)
    if section is None:
        raise ValueError(f"Missing required config: {name}")
    if not isinstance(section, Mapping):
        raise TypeError(f"{name} must be an object")
    return section


def read_value(section: Mapping[str, Any], name: str, field: str, kind: type) -> Any:
    """Return ``section[field]`` checked against ``kind`` (str, bool or int).

    Booleans are not accepted where an integer is expected. Errors name the
    dotted key, e.g. ``search.max_limit``.
    """
    key = f"{name}.{field}"
    if field not in section:
        raise ValueError(f"Missing required config: {key}")
    value = section[field]
    if (isinstance(value, bool) and kind is not bool) or not isinstance(value, kind):
        raise TypeError(f"{key} must be {_KIND_NAMES[kind]}")
    return value


def read_str_list(section: Mapping[str, Any], name: str, field: str) -> list[str]:
    key = f"{name}.{field}"
    if field not in section:
        raise ValueError(f"Missing required config: {key}")
    value = section[field]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"{key} must be a list of strings")
    return list(value)


def check_non_empty(value: str, config_key: str) -> None:
    if not value.strip():
        raise ValueError(f"{config_key} must not be empty")
