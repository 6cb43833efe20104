"""Exception hierarchy for SphinxSearch."""

from __future__ import annotations


class SphinxSearchError(Exception):
    """Base class for all SphinxSearch errors."""


class NotSupportedError(SphinxSearchError):
    """Raised when a requested feature does not exist in the SphinxQL dialect."""


class InvalidCallError(SphinxSearchError):
    """Raised when an operation is called before its prerequisite is set.

    Attributes:
        field: Name of the missing prerequisite.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TransportError(SphinxSearchError):
    """Raised when statement execution or result set advancement fails.

    Attributes:
        sql: Statement text that was being executed, if known.
    """

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class ResultSetError(SphinxSearchError):
    """Raised when a collaborator breaks the result set contract.

    Covers the daemon returning fewer result sets (or columns) than the query
    implies, and a snippet source returning a mismatched number of texts.
    """
