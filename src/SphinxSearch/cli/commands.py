"""Command implementations for the SphinxSearch CLI.

Encapsulates query composition and execution, separated from CLI parameter
handling and output formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from SphinxSearch.config import AppConfig
from SphinxSearch.core.models import SearchResult
from SphinxSearch.core.query import Query
from SphinxSearch.renderers import OutputWriter
from SphinxSearch.transport import Connection
from SphinxSearch.utils.log import log


@dataclass(slots=True)
class SearchCommand:
    """Run one faceted search composed from config defaults and CLI overrides."""

    config: AppConfig
    connection: Connection
    output_writer: OutputWriter
    match: str | None = None
    index: str | None = None
    facets: tuple[str, ...] = ()
    show_meta: bool | None = None
    limit: int | None = None

    def build_query(self) -> Query:
        """Compose the query; CLI facets replace configured ones."""
        search = self.config.search
        query = (
            Query(self.connection)
            .from_(self.index or search.index)
            .limit(search.limit if self.limit is None else self.limit)
            .show_meta(search.show_meta if self.show_meta is None else self.show_meta)
            .facets(list(self.facets) if self.facets else list(search.facets))
        )
        if self.match:
            query.match(self.match)
        if search.options:
            query.options(search.options)
        if search.snippet_options:
            query.snippet_options(search.snippet_options)
        return query

    def execute(self) -> SearchResult:
        query = self.build_query()
        index = self.index or self.config.search.index
        log.debug("Running search index=%s match=%s facets=%d", index, self.match, len(query.parts.facets))
        result = query.search()
        log.info("Fetched %d hits, %d facets", len(result.hits), len(result.facets))
        self.output_writer.write_search_result(result, index=index, match=self.match)
        return result


@dataclass(slots=True)
class CountCommand:
    """Count matches of a fulltext query."""

    config: AppConfig
    connection: Connection
    output_writer: OutputWriter
    match: str | None = None
    index: str | None = None

    def execute(self) -> Any:
        query = Query(self.connection).from_(self.index or self.config.search.index)
        if self.match:
            query.match(self.match)
        total = query.count()
        self.output_writer.write_scalar("count", total)
        return total
