"""Snippet enrichment for query result rows.

Sphinx does not store the original indexed text, so snippets are built in a
second pass: a user supplied callback returns the source text for every row,
and CALL SNIPPETS highlights the match keywords inside those texts.

Example:

    def load_sources(rows):
        return [Path(f"/data/items/{row['id']}.txt").read_text() for row in rows]

    rows = (
        Query()
        .from_("idx_item")
        .match("pencil")
        .snippet_callback(load_sources)
        .snippet_options({"limit": 200})
        .all(connection)
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from SphinxSearch.core.errors import InvalidCallError, ResultSetError
from SphinxSearch.core.models import Row
from SphinxSearch.utils.log import log

if TYPE_CHECKING:
    from SphinxSearch.core.query import Query


def fill_up_snippets(query: Query, rows: list[Row]) -> list[Row]:
    """Return rows with a `snippet` key built from the query's snippet callback.

    Rows are returned unchanged when no callback is configured or when there
    are no rows.

    Args:
        query: Query providing match text, index, callback and options.
        rows: Raw result rows.

    Returns:
        New row dicts with `snippet` filled in, in the same order.

    Raises:
        InvalidCallError: If the query has no match text.
        ResultSetError: If the callback or daemon returns a mismatched count.
    """
    callback = query.parts.snippet_callback
    if callback is None or not rows:
        return rows
    _require_match(query)

    sources = list(callback(rows))
    if len(sources) != len(rows):
        raise ResultSetError(
            f"Snippet callback returned {len(sources)} sources for {len(rows)} rows"
        )
    snippets = call_snippets(query, sources)
    if len(snippets) != len(rows):
        raise ResultSetError(f"CALL SNIPPETS returned {len(snippets)} snippets for {len(rows)} rows")
    return [{**row, "snippet": snippet} for row, snippet in zip(rows, snippets)]


def call_snippets(query: Query, sources: Sequence[str], index: str | None = None) -> list[Any]:
    """Build snippets for `sources` against the query's first FROM index.

    Raises:
        InvalidCallError: If match text or the index is missing.
    """
    match = _require_match(query)
    if index is None:
        index = first_index(query)
    log.debug("Calling snippets: index=%s sources=%d", index, len(sources))
    return (
        query.get_connection()
        .create_command()
        .call_snippets(index, sources, match, query.parts.snippet_options)
        .query_column()
    )


def first_index(query: Query) -> str:
    """Return the first index name of the FROM clause."""
    tables = query.parts.from_
    if isinstance(tables, dict):
        tables = list(tables.values())
    if not tables or not isinstance(tables[0], str):
        raise InvalidCallError(
            f'Unable to call snippets: "{type(query).__name__}.from_" should name an index.',
            field="from_",
        )
    return tables[0]


def _require_match(query: Query) -> Any:
    match = query.parts.match
    if match is None:
        raise InvalidCallError(
            f'Unable to call snippets: "{type(query).__name__}.match" should be specified.',
            field="match",
        )
    return match
