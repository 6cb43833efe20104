"""Console text output renderers.

Renders a `SearchResult` into human-friendly text, written through logging.
"""

from __future__ import annotations

from typing import Any, Mapping

from SphinxSearch.core.models import Row, SearchResult
from SphinxSearch.renderers.base import OutputWriter
from SphinxSearch.utils.log import log

_SKIPPED_FACET_COLUMNS = frozenset({"value", "count"})


def _fmt_row(row: Row) -> str:
    return ", ".join(f"{key}={value}" for key, value in row.items() if key != "snippet")


def render_text(result: SearchResult) -> str:
    """Render a search result into a readable text block.

    Args:
        result: Search result.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    hits: Any = result.hits
    rows = list(hits.values()) if isinstance(hits, Mapping) else list(hits)
    lines.append(f"Hits: {len(rows)}")
    for idx, row in enumerate(rows, start=1):
        lines.append(f"{idx}. {_fmt_row(row)}")
        if row.get("snippet"):
            lines.append(f"   Snippet: {row['snippet']}")

    for name, facet_rows in result.facets.items():
        lines.append("")
        lines.append(f"Facet {name}:")
        for row in facet_rows:
            lines.append(f"   {row['value']}: {row['count']}")

    if result.meta:
        lines.append("")
        lines.append("Meta:")
        width = max(len(str(key)) for key in result.meta)
        for key, value in result.meta.items():
            lines.append(f"   {str(key).ljust(width)}  {value}")
    return "\n".join(lines).rstrip() + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_search_result(self, result: SearchResult, *, index: str, match: str | None) -> None:
        log.info("index=%s match=%s", index, match)
        for line in render_text(result).splitlines():
            log.info(line)

    def write_scalar(self, name: str, value: object) -> None:
        log.info("%s=%s", name, value)
