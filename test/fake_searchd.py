"""In-memory DB-API stand-in for a searchd daemon, shared by tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from SphinxSearch.transport import Connection


class FakeCursor:
    def __init__(self, connection: FakeConnection) -> None:
        self.connection = connection
        self.result_sets: list[list[dict[str, Any]]] = []
        self.position = 0
        self.row_idx = 0
        self.closed = False
        self.rowcount = 0

    @property
    def description(self) -> tuple | None:
        if self.position >= len(self.result_sets):
            return None
        rows = self.result_sets[self.position]
        if not rows:
            return ()
        return tuple((name, None, None, None, None, None, None) for name in rows[0])

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> int:
        if self.connection.execute_error is not None:
            raise self.connection.execute_error
        others_open = [c for c in self.connection.cursors if c is not self and not c.closed]
        self.connection.open_cursors_at_execute.append(len(others_open))
        self.connection.executed.append((sql, dict(params or {})))
        self.result_sets = list(self.connection.responses.pop(0)) if self.connection.responses else []
        self.position = 0
        self.row_idx = 0
        self.rowcount = len(self.result_sets[0]) if self.result_sets else 0
        return self.rowcount

    def fetchall(self) -> list[tuple]:
        rows = self.result_sets[self.position][self.row_idx:]
        self.row_idx += len(rows)
        return [tuple(row.values()) for row in rows]

    def fetchone(self) -> tuple | None:
        rows = self.result_sets[self.position]
        if self.row_idx >= len(rows):
            return None
        row = rows[self.row_idx]
        self.row_idx += 1
        return tuple(row.values())

    def nextset(self) -> bool | None:
        if self.connection.nextset_error is not None:
            raise self.connection.nextset_error
        self.connection.nextset_calls += 1
        if self.position + 1 >= len(self.result_sets):
            self.position = len(self.result_sets)
            return None
        self.position += 1
        self.row_idx = 0
        return True

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """Replays queued responses; each response is a list of result sets."""

    def __init__(self, *responses: list[list[dict[str, Any]]]) -> None:
        self.responses = list(responses)
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.cursors: list[FakeCursor] = []
        self.open_cursors_at_execute: list[int] = []
        self.connect_calls = 0
        self.connect_kwargs: dict[str, Any] = {}
        self.nextset_calls = 0
        self.execute_error: BaseException | None = None
        self.nextset_error: BaseException | None = None
        self.closed = False

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def close(self) -> None:
        self.closed = True

    def connector(self, **kwargs: Any) -> FakeConnection:
        self.connect_calls += 1
        self.connect_kwargs = kwargs
        return self


def make_connection(*responses: list[list[dict[str, Any]]]) -> tuple[Connection, FakeConnection]:
    fake = FakeConnection(*responses)
    return Connection(connector=fake.connector), fake
