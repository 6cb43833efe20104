"""Base classes for output writers.

Separates search execution from result presentation for better testability.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from SphinxSearch.core.models import SearchResult


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_search_result(self, result: SearchResult, *, index: str, match: str | None) -> None:
        """Write the result of a single search.

        Args:
            result: Search result to display.
            index: Index that was searched.
            match: Fulltext query text, if any.
        """

    @abstractmethod
    def write_scalar(self, name: str, value: object) -> None:
        """Write a scalar result such as a count."""
