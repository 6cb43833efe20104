from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

Row = dict[str, Any]


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Complete answer of a faceted search.

    Attributes:
        hits: Main result rows, or a mapping of them when `index_by` is set.
        facets: Facet name to rows; each row carries `value` and `count`
            alongside the raw facet columns.
        meta: SHOW META variable name to value. Empty if not requested.
    """

    hits: Sequence[Row] | Mapping[Any, Row] = field(default_factory=list)
    facets: Mapping[str, list[Row]] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dict view of the result."""
        hits = dict(self.hits) if isinstance(self.hits, Mapping) else list(self.hits)
        return {
            "hits": hits,
            "facets": {name: list(rows) for name, rows in self.facets.items()},
            "meta": dict(self.meta),
        }
