"""JSON output renderers."""

from __future__ import annotations

import json
from typing import Any, TextIO

import click

from SphinxSearch.core.models import SearchResult
from SphinxSearch.renderers.base import OutputWriter


def render_json(result: SearchResult, *, index: str, match: str | None) -> dict[str, Any]:
    """Render a search result into a JSON-serializable dict."""
    payload = result.to_dict()
    if isinstance(payload["hits"], dict):
        payload["hits"] = {str(key): row for key, row in payload["hits"].items()}
    return {"index": index, "match": match, **payload}


class JsonOutputWriter(OutputWriter):
    """Write results as JSON documents, one per call."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def write_search_result(self, result: SearchResult, *, index: str, match: str | None) -> None:
        self._emit(render_json(result, index=index, match=match))

    def write_scalar(self, name: str, value: object) -> None:
        self._emit({name: value})

    def _emit(self, payload: dict[str, Any]) -> None:
        text = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
        click.echo(text, file=self.stream)
