"""Search domain configuration: defaults applied to CLI queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from SphinxSearch.config.common import (
    expect_bool,
    expect_int,
    expect_mapping,
    expect_str,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Default search settings.

    Attributes:
        index: Index searched when none is given on the command line.
        limit: Row limit of the main result set.
        show_meta: Whether to append SHOW META.
        facets: Facet declarations, in any format accepted by `Query.facets`.
        options: OPTION clause values.
        snippet_options: CALL SNIPPETS options.
    """

    index: str
    limit: int = 20
    show_meta: bool = False
    facets: Sequence[Any] = ()
    options: Mapping[str, Any] = field(default_factory=dict)
    snippet_options: Mapping[str, Any] = field(default_factory=dict)


def load_search(raw: Mapping[str, Any]) -> SearchConfig:
    """Load the `search` section."""
    section = get_section(raw, "search", required=True)
    facets = section.get("facets") or []
    if not isinstance(facets, (list, Mapping)):
        raise TypeError("search.facets must be a list or an object")
    return SearchConfig(
        index=expect_str(get_required_value(section, "index", "search.index"), "search.index"),
        limit=expect_int(section.get("limit", 20), "search.limit"),
        show_meta=expect_bool(section.get("show_meta", False), "search.show_meta"),
        facets=tuple(facets) if isinstance(facets, list) else (dict(facets),),
        options=expect_mapping(section.get("options"), "search.options"),
        snippet_options=expect_mapping(section.get("snippet_options"), "search.snippet_options"),
    )


def check_search(config: SearchConfig) -> None:
    """Validate search domain constraints."""
    if not config.index.strip():
        raise ValueError("search.index must not be empty")
    if config.limit < 0:
        raise ValueError("search.limit must be >= 0")
    for idx, facet in enumerate(config.facets):
        if not isinstance(facet, (str, Mapping)):
            raise TypeError(f"search.facets[{idx}] must be a string or an object")
