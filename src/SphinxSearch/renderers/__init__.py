"""Output renderers for command results (console, JSON)."""

from __future__ import annotations

from SphinxSearch.renderers.base import OutputWriter
from SphinxSearch.renderers.console import ConsoleOutputWriter, render_text
from SphinxSearch.renderers.json import JsonOutputWriter, render_json


def create_output_writer(output_format: str) -> OutputWriter:
    """Create output writer for `console` or `json`.

    Raises:
        ValueError: If the format is unknown.
    """
    if output_format == "console":
        return ConsoleOutputWriter()
    if output_format == "json":
        return JsonOutputWriter()
    raise ValueError(f"Unsupported output format: {output_format}")


__all__ = [
    "OutputWriter",
    "ConsoleOutputWriter",
    "JsonOutputWriter",
    "render_json",
    "render_text",
    "create_output_writer",
]
