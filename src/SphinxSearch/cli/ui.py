"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from SphinxSearch.cli.runner import CommandRunner
from SphinxSearch.config import load_config_with_defaults

_FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Output format.",
)


@click.group(help="SphinxSearch: faceted fulltext search against a searchd daemon.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path("config/default.yml"),
    show_default=True,
    help="Path to YAML config file, merged over config/default.yml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config, so
    `connection.password_env` can refer to them.
    """
    load_dotenv()
    default_path = Path("config/default.yml")
    if not default_path.exists():
        default_path = config_path
    ctx.obj = load_config_with_defaults(config_path, default_path=default_path)


@cli.command("search")
@click.option("--match", "match", default=None, help="Fulltext query text.")
@click.option("--index", "index", default=None, help="Index to search; defaults to search.index.")
@click.option("--facet", "facets", multiple=True, help="Facet column; repeat for several.")
@click.option("--meta/--no-meta", "show_meta", default=None, help="Fetch SHOW META.")
@click.option("--limit", "limit", type=int, default=None, help="Maximum hits.")
@_FORMAT_OPTION
@click.pass_context
def search_cmd(
    ctx: click.Context,
    match: str | None,
    index: str | None,
    facets: tuple[str, ...],
    show_meta: bool | None,
    limit: int | None,
    output_format: str,
) -> None:
    """Search an index and print hits, facets and meta.

    Raises:
        click.Abort: When the search fails.
    """
    runner = CommandRunner(ctx.obj)
    runner.run_search(
        action=ctx.command.name,
        output_format=output_format,
        match=match,
        index=index,
        facets=facets,
        show_meta=show_meta,
        limit=limit,
    )


@cli.command("count")
@click.option("--match", "match", default=None, help="Fulltext query text.")
@click.option("--index", "index", default=None, help="Index to count in; defaults to search.index.")
@_FORMAT_OPTION
@click.pass_context
def count_cmd(ctx: click.Context, match: str | None, index: str | None, output_format: str) -> None:
    """Count documents matching a fulltext query.

    Raises:
        click.Abort: When the count fails.
    """
    runner = CommandRunner(ctx.obj)
    runner.run_count(action=ctx.command.name, output_format=output_format, match=match, index=index)
