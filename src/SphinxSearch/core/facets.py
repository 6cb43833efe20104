"""Facet declarations and their normalization.

Facets are accepted in several shapes at the API boundary:

- a bare name: `"brand_id"`
- a keyed configuration: `{"price": {"select": "INTERVAL(price,200,400) AS price"}}`
- a mapping of either, where an `int` key marks a positional (bare) entry

Each shape is converted once into a tagged variant (`BareFacet` or
`KeyedFacet`) and later normalized into a uniform `FacetSpec`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union

DEFAULT_COUNT = "count(*)"

_OVERRIDE_KEYS = frozenset({"name", "value", "count", "select", "order", "limit", "offset"})
_STRING_KEYS = ("name", "value", "count")


@dataclass(frozen=True, slots=True)
class BareFacet:
    """Positional facet: the name doubles as value column."""

    name: str


@dataclass(frozen=True, slots=True)
class KeyedFacet:
    """Facet declared under an explicit key with optional overrides."""

    key: str
    overrides: Mapping[str, Any] = field(default_factory=dict)


FacetInput = Union[BareFacet, KeyedFacet]


@dataclass(frozen=True, slots=True)
class FacetSpec:
    """Uniform facet descriptor.

    Attributes:
        name: Key under which facet rows are grouped in the search result.
        value: Column holding the facet value (matched case-insensitively).
        count: Column holding the facet count, matched exactly.
        select: Optional FACET select override.
        order: Optional FACET order override.
        limit: Optional FACET limit.
        offset: Optional FACET offset.
    """

    name: str
    value: str
    count: str = DEFAULT_COUNT
    select: Any = None
    order: Any = None
    limit: int | None = None
    offset: int | None = None


def parse_facets(facets: Mapping[Any, Any] | Sequence[Any] | None) -> list[FacetInput]:
    """Convert raw facet declarations into tagged variants.

    Args:
        facets: Raw declarations (see module docstring).

    Returns:
        Ordered list of facet variants.

    Raises:
        TypeError: If a declaration has an unsupported shape.
    """
    if facets is None:
        return []
    if isinstance(facets, (BareFacet, KeyedFacet)):
        return [facets]
    if isinstance(facets, str):
        return [BareFacet(facets)]
    if isinstance(facets, Mapping):
        items = list(facets.items())
    else:
        items = []
        for entry in facets:
            if isinstance(entry, Mapping):
                items.extend(entry.items())
            else:
                items.append((None, entry))

    out: list[FacetInput] = []
    for key, value in items:
        if isinstance(value, (BareFacet, KeyedFacet)):
            out.append(value)
        elif key is None or isinstance(key, int):
            if not isinstance(value, str):
                raise TypeError(f"Positional facet must be a string, got {type(value).__name__}")
            out.append(BareFacet(value))
        elif value is None:
            out.append(KeyedFacet(str(key)))
        elif isinstance(value, Mapping):
            unknown = set(value) - _OVERRIDE_KEYS
            if unknown:
                raise TypeError(f"Unknown facet option(s) for {key!r}: {sorted(unknown)}")
            for option in _STRING_KEYS:
                if option in value and not isinstance(value[option], str):
                    raise TypeError(f"Facet {key!r} option '{option}' must be a string")
            out.append(KeyedFacet(str(key), dict(value)))
        else:
            raise TypeError(f"Facet {key!r} configuration must be a mapping")
    return out


def merge_facets(existing: Sequence[FacetInput], extra: Sequence[FacetInput]) -> list[FacetInput]:
    """Shallow-merge facet variants.

    A keyed entry replaces an existing keyed entry with the same key in place;
    every other entry is appended.
    """
    merged = list(existing)
    for facet in extra:
        if isinstance(facet, KeyedFacet):
            for idx, current in enumerate(merged):
                if isinstance(current, KeyedFacet) and current.key == facet.key:
                    merged[idx] = facet
                    break
            else:
                merged.append(facet)
        else:
            merged.append(facet)
    return merged


def normalize_facet(facet: FacetInput) -> FacetSpec:
    """Normalize a single facet variant into a `FacetSpec`."""
    if isinstance(facet, BareFacet):
        return FacetSpec(name=facet.name, value=facet.name)
    base: dict[str, Any] = {"name": facet.key, "value": facet.key, "count": DEFAULT_COUNT}
    base.update(facet.overrides)
    return FacetSpec(**base)


def normalize_facets(facets: Sequence[FacetInput]) -> list[FacetSpec]:
    """Normalize facet variants, preserving declaration order.

    Two facets may share a name; their rows then accumulate under that name.
    """
    return [normalize_facet(facet) for facet in facets]
