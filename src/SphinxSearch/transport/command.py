"""Statement execution over a DB-API cursor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Mapping, Sequence

from SphinxSearch.core.errors import TransportError
from SphinxSearch.core.expression import Expression
from SphinxSearch.core.models import Row
from SphinxSearch.utils.log import log_statement

if TYPE_CHECKING:
    from SphinxSearch.transport.connection import Connection


class DataReader:
    """Forward-only reader over the result sets of one executed statement.

    The reader starts positioned at the first result set. `next_result()`
    advances to the following one and returns False once none is left.
    """

    def __init__(self, cursor: Any, command: Command) -> None:
        self._cursor = cursor
        self._command = command
        self._closed = False

    @property
    def column_names(self) -> list[str]:
        description = self._cursor.description
        if not description:
            return []
        return [column[0] for column in description]

    @property
    def row_count(self) -> int:
        return int(getattr(self._cursor, "rowcount", 0) or 0)

    def read(self) -> Row | None:
        """Read the next row of the current result set, or None at its end."""
        if not self._cursor.description:
            return None
        row = self._guard(self._cursor.fetchone)
        if row is None:
            return None
        return self._to_row(row, self.column_names)

    def read_all(self) -> list[Row]:
        """Read every remaining row of the current result set."""
        if not self._cursor.description:
            return []
        names = self.column_names
        return [self._to_row(row, names) for row in self._guard(self._cursor.fetchall)]

    def next_result(self) -> bool:
        """Advance to the next result set.

        Returns:
            Whether another result set is available.

        Raises:
            TransportError: If the driver fails while advancing.
        """
        return bool(self._guard(self._cursor.nextset))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._guard(self._cursor.close)

    def __iter__(self) -> Iterator[Row]:
        row = self.read()
        while row is not None:
            yield row
            row = self.read()

    def __enter__(self) -> DataReader:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _guard(self, func: Any) -> Any:
        try:
            return func()
        except self._command.connection.driver_errors as error:
            raise TransportError(f"Reading result failed: {error}", sql=self._command.sql) from error

    @staticmethod
    def _to_row(row: Any, names: Sequence[str]) -> Row:
        if isinstance(row, Mapping):
            return dict(row)
        return dict(zip(names, row))


class Command:
    """A SphinxQL statement bound to a connection.

    Attributes:
        connection: Connection used for execution.
        sql: Statement text with `%(name)s` placeholders.
        params: Values bound to the placeholders.
    """

    def __init__(self, connection: Connection, sql: str | None = None, params: Mapping[str, Any] | None = None) -> None:
        self.connection = connection
        self.sql = sql
        self.params: dict[str, Any] = dict(params or {})

    def bind_values(self, params: Mapping[str, Any]) -> Command:
        self.params.update(params)
        return self

    def call_snippets(
        self,
        index: str,
        sources: str | Sequence[str],
        match: str | Expression,
        options: Mapping[str, Any] | None = None,
    ) -> Command:
        """Turn this command into a CALL SNIPPETS statement.

        Each row of the result carries one snippet, in source order; use
        `query_column()` to fetch them.
        """
        params: dict[str, Any] = {}
        self.sql = self.connection.get_query_builder().build_call_snippets(index, sources, match, options, params)
        self.params = params
        return self

    def query(self) -> DataReader:
        """Execute the statement and return a reader on its first result set.

        Raises:
            TransportError: If the statement fails.
        """
        if not self.sql:
            raise TransportError("Statement text is empty")
        log_statement(self.sql, self.params)
        cursor = self.connection.cursor()
        try:
            # without params the driver skips %-formatting, so a literal % needs no escaping
            cursor.execute(self.sql, self.params or None)
        except self.connection.driver_errors as error:
            cursor.close()
            raise TransportError(f"Statement failed: {error}", sql=self.sql) from error
        except BaseException:
            cursor.close()
            raise
        return DataReader(cursor, self)

    def execute(self) -> int:
        """Execute a statement without result rows; returns the affected row count."""
        reader = self.query()
        try:
            return reader.row_count
        finally:
            reader.close()

    def query_all(self) -> list[Row]:
        with self.query() as reader:
            return reader.read_all()

    def query_one(self) -> Row | None:
        with self.query() as reader:
            return reader.read()

    def query_column(self) -> list[Any]:
        with self.query() as reader:
            return [next(iter(row.values()), None) for row in reader.read_all()]

    def query_scalar(self) -> Any:
        with self.query() as reader:
            row = reader.read()
        if row is None:
            return None
        return next(iter(row.values()), None)
