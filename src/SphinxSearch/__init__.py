"""SphinxSearch: SphinxQL query building and faceted search for searchd."""

from __future__ import annotations

from SphinxSearch.core.errors import (
    InvalidCallError,
    NotSupportedError,
    ResultSetError,
    SphinxSearchError,
    TransportError,
)
from SphinxSearch.core.expression import SORT_ASC, SORT_DESC, Expression
from SphinxSearch.core.facets import FacetSpec, normalize_facets, parse_facets
from SphinxSearch.core.models import SearchResult
from SphinxSearch.core.query import Query
from SphinxSearch.transport import Connection

__all__ = [
    "Connection",
    "Expression",
    "FacetSpec",
    "InvalidCallError",
    "NotSupportedError",
    "Query",
    "ResultSetError",
    "SORT_ASC",
    "SORT_DESC",
    "SearchResult",
    "SphinxSearchError",
    "TransportError",
    "normalize_facets",
    "parse_facets",
]
