"""Search error types.

Messages are meant to be shown to end users verbatim: they always name the
offending token, sub-expression or pattern.
"""

from __future__ import annotations


class SearchError(ValueError):
    """Base class for query parse and compile failures."""


class ParseError(SearchError):
    """Raised when a query token is malformed.

    Attributes:
        token: The raw token (or property expression) that failed, if known.
    """

    def __init__(self, message: str, *, token: str | None = None) -> None:
        super().__init__(message)
        self.token = token


class CompileError(SearchError):
    """Raised when a parsed query cannot be turned into predicates."""
