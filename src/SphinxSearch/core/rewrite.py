"""Derived queries for scalar reads.

Scalar reads (COUNT, SUM, EXISTS, ...) must ignore the paging and column
list of the original query. Instead of swapping fields on the original and
restoring them afterwards, these helpers build a separately owned copy, so
the original query is never touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from SphinxSearch.core.expression import Expression

if TYPE_CHECKING:
    from SphinxSearch.core.query import Query


def needs_wrapping(query: Query) -> bool:
    """Whether a single expression rewrite would change the query meaning."""
    parts = query.parts
    return bool(parts.group_by) or bool(parts.union) or parts.distinct


def build_scalar_query(query: Query, select_expression: str | Expression) -> Query:
    """Return a query selecting only `select_expression` from `query`.

    Plain queries are copied with the column list replaced and paging
    dropped. Grouped, distinct or union queries are wrapped unchanged as a
    derived source `c` and the expression is selected from it.
    """
    if not needs_wrapping(query):
        derived = type(query).create(query)
        derived.parts.select = [select_expression]
        derived.parts.select_option = None
        derived.parts.limit = None
        derived.parts.offset = None
        derived.parts.snippet_callback = None
        derived.parts.index_by = None
        return derived

    inner = type(query).create(query)
    outer = type(query).create(inner)
    outer.parts = type(inner.parts)(select=[select_expression], from_={"c": inner})
    return outer


def build_exists_query(query: Query) -> Query:
    """Return a query fetching a single constant row when `query` matches."""
    derived = type(query).create(query)
    derived.parts.select = [Expression("1")]
    derived.parts.select_option = None
    derived.parts.limit = 1
    derived.parts.offset = None
    derived.parts.snippet_callback = None
    derived.parts.index_by = None
    return derived
