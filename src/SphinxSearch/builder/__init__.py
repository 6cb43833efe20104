"""SphinxQL statement building."""

from __future__ import annotations

from SphinxSearch.builder.conditions import ConditionBuilder, quote_name
from SphinxSearch.builder.query_builder import QueryBuilder, escape_match_value

__all__ = [
    "ConditionBuilder",
    "QueryBuilder",
    "escape_match_value",
    "quote_name",
]
