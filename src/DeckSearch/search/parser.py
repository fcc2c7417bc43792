"""Search query parser.

Turns the user-facing query language into a ``QueryModel``:

    deck:Spanish tag:verb -is:suspended prop:ivl>=10 front:re:café.*

Grammar (informal)
- token    := '-'? ( quoted | prefixed | fieldtok | wildcard | plain )
- quoted   := '"' text '"'                     exact phrase
- prefixed := ('re:' | 'nc:' | 'w:') text      regex / no-combining / word
- fieldtok := field ':' value
- value    := text | 're:' text | name ':' text

Rules
- Classification is first-match-wins in the order above; the order matters
  (``re:x`` is a regex, not a field named ``re``).
- ``is:`` keywords outside ``STATE_KEYWORDS`` are ignored, not rejected.
- Regex patterns are not checked here; compilers validate them.
- ``OR`` and parentheses are only recorded on the model; every term is ANDed.
"""

from __future__ import annotations

import re

from DeckSearch.core.errors import ParseError
from DeckSearch.core.query import (
    MAX_FLAG,
    MIN_FLAG,
    PROPERTY_NAMES,
    PROPERTY_OPERATORS,
    STATE_KEYWORDS,
    PropertyFilter,
    QueryBuilder,
    QueryModel,
    TextSearch,
)
from DeckSearch.search.tokenizer import tokenize
from DeckSearch.utils.log import log

_REGEX_PREFIX = "re:"
_NO_COMBINING_PREFIX = "nc:"
_WORD_BOUNDARY_PREFIX = "w:"
_WILDCARD_CHARS = ("*", "_")

_OPERATOR_ALTERNATION = "|".join(re.escape(op) for op in PROPERTY_OPERATORS)
_PROPERTY_RE = re.compile(rf"^([A-Za-z0-9_]+)({_OPERATOR_ALTERNATION})(-?[0-9]+)$")
_FLAG_RE = re.compile(r"^[+-]?[0-9]+$")

# Property values must fit a signed 64-bit SQLite INTEGER.
_MIN_PROPERTY_VALUE = -(2**63)
_MAX_PROPERTY_VALUE = 2**63 - 1


def parse(raw: str) -> QueryModel:
    """Parse a raw query string.

    Args:
        raw: Query string; empty input yields an empty model.

    Returns:
        Immutable parsed query.

    Raises:
        ParseError: If any token is malformed. No model is returned then.
    """
    builder = QueryBuilder()
    if not raw:
        return builder.build()

    builder.has_grouping = "(" in raw or ")" in raw
    builder.has_or = " or " in raw.lower()

    for token in tokenize(raw):
        try:
            classify_token(token, builder)
        except ParseError as error:
            raise ParseError(f"failed to parse token '{token}': {error}", token=token) from error

    model = builder.build()
    log.debug("Parsed query %r -> %s", raw, model)
    return model


def classify_token(token: str, builder: QueryBuilder) -> None:
    """Classify one token and append its predicate to ``builder``.

    Nothing is appended when the token is rejected.

    Args:
        token: One tokenizer token.
        builder: Accumulator for the query being parsed.

    Raises:
        ParseError: If the token is malformed.
    """
    token = token.strip()
    is_negated = token.startswith("-")
    if is_negated:
        token = token[1:]
    if not token:
        return

    if _is_quoted(token):
        builder.text_searches.append(TextSearch(text=token[1:-1], is_exact=True, is_negated=is_negated))
        return

    if token.startswith(_REGEX_PREFIX):
        pattern = _unquote(token[len(_REGEX_PREFIX):])
        if pattern:
            builder.text_searches.append(TextSearch(text=pattern, is_regex=True, is_negated=is_negated))
        return

    if token.startswith(_NO_COMBINING_PREFIX):
        search = _modified_search(token[len(_NO_COMBINING_PREFIX):], is_negated, no_combining=True)
        if search is not None:
            builder.text_searches.append(search)
        return

    if token.startswith(_WORD_BOUNDARY_PREFIX):
        search = _modified_search(token[len(_WORD_BOUNDARY_PREFIX):], is_negated, word_boundary=True)
        if search is not None:
            builder.text_searches.append(search)
        return

    if ":" in token:
        _classify_field_token(token, is_negated, builder)
        return

    if any(ch in token for ch in _WILDCARD_CHARS):
        builder.text_searches.append(TextSearch(text=token, is_wildcard=True, is_negated=is_negated))
        return

    builder.text_searches.append(TextSearch(text=token, is_negated=is_negated))


def parse_property(value: str) -> PropertyFilter:
    """Parse a ``prop:`` expression such as ``ivl>=10`` or ``due=-1``.

    Args:
        value: Text after ``prop:``.

    Returns:
        Structured comparison; it is not evaluated here.

    Raises:
        ParseError: If the shape is wrong, the property is unknown or the
            value does not fit a 64-bit integer.
    """
    match = _PROPERTY_RE.match(value)
    if match is None:
        raise ParseError(f"invalid property filter format: {value}", token=value)

    name, operator, number = match.groups()
    if name not in PROPERTY_NAMES:
        raise ParseError(
            f"invalid property: {name} (valid: {', '.join(PROPERTY_NAMES)})",
            token=value,
        )
    number_value = int(number)
    if not _MIN_PROPERTY_VALUE <= number_value <= _MAX_PROPERTY_VALUE:
        raise ParseError(f"invalid {name} value: {number} (out of range)", token=value)
    return PropertyFilter(property=name, operator=operator, value=number_value)


def _classify_field_token(token: str, is_negated: bool, builder: QueryBuilder) -> None:
    """Handle ``field:value`` and ``field:name:value`` tokens."""
    field, value = token.split(":", 1)
    field = field.lower()
    value = value.strip('"')

    if field == "deck":
        (builder.decks_exclude if is_negated else builder.decks_include).append(value)
    elif field == "tag":
        (builder.tags_exclude if is_negated else builder.tags_include).append(value)
    elif field == "is":
        state = value.lower()
        if state in STATE_KEYWORDS:
            (builder.states_exclude if is_negated else builder.states).add(state)
        else:
            log.debug("Ignoring unknown state keyword: %s", value)
    elif field == "flag":
        flag = _parse_flag(value)
        (builder.flags_exclude if is_negated else builder.flags).add(flag)
    elif field == "prop":
        try:
            prop = parse_property(value)
        except ParseError as error:
            raise ParseError(f"invalid property filter: {error}", token=value) from error
        if is_negated:
            prop = PropertyFilter(prop.property, prop.operator, prop.value, is_negated=True)
        builder.property_filters.append(prop)
    elif field in ("front", "back"):
        _add_field_search(field, value, is_negated, builder)
    elif ":" in value:
        # Generic field:name:value; the leading word only selects this branch.
        name, field_value = value.split(":", 1)
        _add_field_search(name, field_value, is_negated, builder)
    else:
        _add_field_search(field, value, is_negated, builder)


def _add_field_search(field: str, value: str, is_negated: bool, builder: QueryBuilder) -> None:
    if value.startswith(_REGEX_PREFIX):
        builder.text_searches.append(
            TextSearch(text=value[len(_REGEX_PREFIX):], is_regex=True, is_negated=is_negated, field=field)
        )
    elif is_negated:
        builder.text_searches.append(TextSearch(text=value, is_negated=True, field=field))
    else:
        builder.field_searches[field] = value


def _parse_flag(value: str) -> int:
    if _FLAG_RE.match(value):
        flag = int(value)
        if MIN_FLAG <= flag <= MAX_FLAG:
            return flag
    raise ParseError(f"invalid flag number: {value} (must be {MIN_FLAG}-{MAX_FLAG})", token=value)


def _modified_search(
    payload: str,
    is_negated: bool,
    *,
    no_combining: bool = False,
    word_boundary: bool = False,
) -> TextSearch | None:
    """Build an ``nc:``/``w:`` search; the payload picks exact/wildcard/plain."""
    if _is_quoted(payload):
        text = payload[1:-1]
        is_exact, is_wildcard = True, False
    else:
        text = payload.strip('"')
        is_exact = False
        is_wildcard = any(ch in text for ch in _WILDCARD_CHARS)
    if not text:
        return None
    return TextSearch(
        text=text,
        is_exact=is_exact,
        is_wildcard=is_wildcard,
        is_no_combining=no_combining,
        is_word_boundary=word_boundary,
        is_negated=is_negated,
    )


def _is_quoted(token: str) -> bool:
    return len(token) >= 2 and token.startswith('"') and token.endswith('"')


def _unquote(value: str) -> str:
    return value[1:-1] if _is_quoted(value) else value
