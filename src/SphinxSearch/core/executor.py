"""Multi result set search execution.

A faceted search is a single round trip whose response is an ordered series
of result sets:

    hits -> facet[0] -> ... -> facet[n-1] -> meta (only if requested)

`MultiResultReader` walks that series in lock step with the declared facets
and refuses to continue when the daemon yields fewer result sets than the
query implies.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Sequence

from SphinxSearch.core.errors import ResultSetError
from SphinxSearch.core.facets import FacetSpec, normalize_facets
from SphinxSearch.core.models import Row, SearchResult
from SphinxSearch.utils.log import log

if TYPE_CHECKING:
    from SphinxSearch.core.query import Query
    from SphinxSearch.transport.command import DataReader
    from SphinxSearch.transport.connection import Connection


class ResultSetPhase(Enum):
    """Position of the reader within the response."""

    IDLE = auto()
    HITS = auto()
    FACET = auto()
    META = auto()
    EXHAUSTED = auto()


class MultiResultReader:
    """Drain hits, facet and meta result sets from a single data reader."""

    def __init__(self, reader: DataReader, facets: Sequence[FacetSpec], show_meta: bool) -> None:
        self.reader = reader
        self.facets = tuple(facets)
        self.show_meta = show_meta
        self.phase = ResultSetPhase.IDLE
        self.result_sets_read = 0

    @property
    def expected_result_sets(self) -> int:
        return 1 + len(self.facets) + (1 if self.show_meta else 0)

    def read(self) -> tuple[list[Row], dict[str, list[Row]], dict[str, Any]]:
        """Read every result set and close the reader.

        Returns:
            Tuple of (raw hit rows, facet rows by facet name, meta mapping).

        Raises:
            ResultSetError: If a result set or facet count column is missing.
        """
        try:
            hits = self._read_hits()
            facets: dict[str, list[Row]] = {}
            for spec in self.facets:
                facets.setdefault(spec.name, []).extend(self._read_facet(spec))
            meta = self._read_meta() if self.show_meta else {}
            self._transition(ResultSetPhase.EXHAUSTED)
        finally:
            self.reader.close()

        if self.result_sets_read != self.expected_result_sets:
            raise ResultSetError(
                f"Read {self.result_sets_read} result sets, expected {self.expected_result_sets}"
            )
        log.debug(
            "Drained %d result sets: hits=%d facets=%d meta=%d",
            self.result_sets_read,
            len(hits),
            len(facets),
            len(meta),
        )
        return hits, facets, meta

    def _read_hits(self) -> list[Row]:
        self._transition(ResultSetPhase.HITS)
        return self.reader.read_all()

    def _read_facet(self, spec: FacetSpec) -> list[Row]:
        self._transition(ResultSetPhase.FACET, label=f"facet '{spec.name}'")
        value_key = spec.value.lower()
        rows: list[Row] = []
        for raw in self.reader.read_all():
            # daemon lower-cases output column names
            value = next((v for k, v in raw.items() if k.lower() == value_key), None)
            if spec.count not in raw:
                raise ResultSetError(
                    f"Facet '{spec.name}' result has no count column '{spec.count}'"
                )
            rows.append({**raw, "value": value, "count": raw[spec.count]})
        return rows

    def _read_meta(self) -> dict[str, Any]:
        self._transition(ResultSetPhase.META, label="meta")
        meta: dict[str, Any] = {}
        for row in self.reader.read_all():
            meta[row["Variable_name"]] = row["Value"]
        return meta

    def _transition(self, phase: ResultSetPhase, *, label: str | None = None) -> None:
        if phase is ResultSetPhase.HITS:
            if self.phase is not ResultSetPhase.IDLE:
                raise ResultSetError(f"Cannot read hits in phase {self.phase.name}")
        elif phase is not ResultSetPhase.EXHAUSTED:
            if self.phase in (ResultSetPhase.IDLE, ResultSetPhase.EXHAUSTED):
                raise ResultSetError(f"Cannot read {label} in phase {self.phase.name}")
            if not self.reader.next_result():
                raise ResultSetError(
                    f"Daemon returned {self.result_sets_read} result sets; missing {label} "
                    f"(expected {self.expected_result_sets})"
                )
        if phase is not ResultSetPhase.EXHAUSTED:
            self.result_sets_read += 1
        self.phase = phase


def execute_search(query: Query, db: Connection | None = None) -> SearchResult:
    """Execute `query` and assemble hits, facets and meta.

    Hit rows are populated (snippets, `index_by`) only after every result
    set has been drained, since populating may issue further statements on
    the same connection.
    """
    if query.parts.emulate_execution:
        return SearchResult(hits=[], facets={}, meta={})

    command = query.create_command(db)
    specs = normalize_facets(query.parts.facets)
    reader = MultiResultReader(command.query(), specs, show_meta=bool(query.parts.show_meta))
    raw_hits, facets, meta = reader.read()

    return SearchResult(hits=query.populate(raw_hits), facets=facets, meta=meta)
