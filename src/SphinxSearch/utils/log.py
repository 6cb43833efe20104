"""SphinxSearch logging utilities.

Provides the package logger with a timestamp + abbreviated level prefix, and
centralizes logger initialization for the CLI. Executed statements go to the
`SphinxSearch.sql` child logger so they can be shown on the console without
lowering the level of everything else.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Final, Mapping


_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("SphinxSearch")
sql_log = logging.getLogger("SphinxSearch.sql")

_MAX_PARAM_CHARS: Final[int] = 80


class _ConsoleFilter(logging.Filter):
    """Pass records at the console level, plus statements when enabled."""

    def __init__(self, level: int, show_statements: bool) -> None:
        super().__init__()
        self.level = level
        self.show_statements = show_statements

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 - stdlib name
        if record.levelno >= self.level:
            return True
        return self.show_statements and record.name == sql_log.name


def _abbreviate(params: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, str) and len(value) > _MAX_PARAM_CHARS:
            value = f"{value[:_MAX_PARAM_CHARS - 3]}..."
        out[key] = value
    return out


def log_statement(sql: str, params: Mapping[str, Any]) -> None:
    """Log a SphinxQL statement at DEBUG on the `SphinxSearch.sql` logger.

    Long string parameters (snippet sources, mostly) are shortened.
    """
    if not sql_log.isEnabledFor(logging.DEBUG):
        return
    sql_log.debug("SphinxQL: %s params=%s", sql, _abbreviate(params))


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
    log_statements: bool = False,
) -> None:
    """Configure the SphinxSearch logger.

    Uses format: mm-dd HH:MM:SS [<LVL>] <message>
    where LVL is one of: DEBG/INFO/WARN/ERRO.

    Args:
        level: Logging level for the console handler (e.g., INFO, DEBUG).
        action: CLI command name, used to build the log file path.
        log_to_file: Whether to mirror logs (including statements) to a file.
        log_dir: Base directory for log files.
        log_statements: Also show executed statements on the console.
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(message)s",
        datefmt="%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.DEBUG)
    stream_handler.addFilter(_ConsoleFilter(resolved_level, log_statements))
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_to_file and action:
        timestamp = datetime.now().strftime("%m%d%H%M%S")
        action_dir = Path(log_dir or "log") / action
        action_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(action_dir / f"{action}_{timestamp}.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    log.handlers.clear()
    for handler in handlers:
        log.addHandler(handler)
    log.setLevel(min(logging.DEBUG, resolved_level))
    log.propagate = False
