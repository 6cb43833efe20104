"""CLI package for SphinxSearch command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from SphinxSearch.cli.runner import CommandRunner
from SphinxSearch.cli.ui import cli


def main() -> None:
    """Run SphinxSearch CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
