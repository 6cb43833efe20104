"""Command runner for coordinating CLI execution.

Manages logging configuration, connection lifecycle and error handling for
command execution.
"""

from __future__ import annotations

from typing import Any

import click

from SphinxSearch.cli.commands import CountCommand, SearchCommand
from SphinxSearch.config import AppConfig
from SphinxSearch.renderers import create_output_writer
from SphinxSearch.transport import Connection
from SphinxSearch.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig, connection: Connection | None = None) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            connection: Optional pre-built connection; created from config otherwise.
        """
        self.config = config
        self.connection = connection

    def run_search(self, action: str, *, output_format: str = "console", **options: Any) -> None:
        """Execute the search command.

        Raises:
            click.Abort: When the search fails.
        """
        self._run(action, SearchCommand, output_format, options)

    def run_count(self, action: str, *, output_format: str = "console", **options: Any) -> None:
        """Execute the count command.

        Raises:
            click.Abort: When the count fails.
        """
        self._run(action, CountCommand, output_format, options)

    def _run(self, action: str, command_cls: Any, output_format: str, options: dict[str, Any]) -> None:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
            log_statements=self.config.runtime.statements,
        )
        try:
            connection = self.connection or Connection.from_config(
                self.config.connection,
                password=self.config.connection.resolve_password(),
            )
            command = command_cls(
                config=self.config,
                connection=connection,
                output_writer=create_output_writer(output_format),
                **options,
            )
            with connection:
                command.execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
