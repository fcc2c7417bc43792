"""Query tokenizer.

Splits a raw query on whitespace while keeping double-quoted runs intact:

    deck:"Spanish Verbs" -"hola amigo" tag:verb AND is:due
    -> ['deck:"Spanish Verbs"', '-"hola amigo"', 'tag:verb', 'is:due']

Quote characters stay in the token so the classifier can tell a phrase from
a bare word. ``AND`` is implicit and therefore dropped. There is no escape
syntax for a literal quote inside a phrase.
"""

from __future__ import annotations

_QUOTE = '"'
_IMPLICIT_OPERATOR = "AND"


def tokenize(raw: str) -> list[str]:
    """Split ``raw`` into classifier tokens.

    Args:
        raw: Query string as typed by the user.

    Returns:
        Non-empty, stripped tokens in input order, without ``AND``.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    quote_start = 0

    for ch in raw:
        if ch == _QUOTE:
            if in_quotes:
                if len(current) == quote_start + 1:
                    # Empty phrase: forget the opening quote.
                    current.pop()
                else:
                    current.append(ch)
                in_quotes = False
            else:
                quote_start = len(current)
                current.append(ch)
                in_quotes = True
        elif ch.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)

    if in_quotes:
        # Unterminated phrase: drop the dangling quote, keep the text.
        del current[quote_start]
    if current:
        tokens.append("".join(current))

    out: list[str] = []
    for token in tokens:
        token = token.strip()
        if token and token.upper() != _IMPLICIT_OPERATOR:
            out.append(token)
    return out
