"""Fluent SphinxQL query descriptor.

`Query` collects SELECT clause state through chainable setters and executes
it over a `Connection`. Besides the usual relational clauses it carries the
Sphinx specific ones: fulltext MATCH, WITHIN GROUP ORDER BY, OPTION, group
limits, FACET sub-queries, SHOW META and snippet generation.

Example:

    query = (
        Query()
        .select("id, brand_id")
        .from_("idx_item")
        .match("pencil")
        .facets(["brand_id"])
        .show_meta(True)
    )
    result = query.search(connection)

Note: even if no limit is set, the daemon applies an implicit LIMIT 0,20.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence

from SphinxSearch.core.errors import InvalidCallError, NotSupportedError
from SphinxSearch.core.executor import execute_search
from SphinxSearch.core.expression import (
    Expression,
    OrderPair,
    merge_order_by,
    normalize_order_by,
    split_columns,
)
from SphinxSearch.core.facets import FacetInput, merge_facets, parse_facets
from SphinxSearch.core.models import Row, SearchResult
from SphinxSearch.core.rewrite import build_exists_query, build_scalar_query
from SphinxSearch.core.snippets import fill_up_snippets

if TYPE_CHECKING:
    from SphinxSearch.transport.command import Command
    from SphinxSearch.transport.connection import Connection

SnippetCallback = Callable[[Sequence[Row]], Sequence[str]]


@dataclass(slots=True)
class QueryParts:
    """Clause state of a query, as consumed by the statement builder.

    Attributes:
        select: Selected columns; None means `*`.
        select_option: Extra keyword inserted after SELECT.
        distinct: Whether to emit SELECT DISTINCT.
        from_: Index names, or a mapping alias -> index name / sub-query.
        where: WHERE condition (see `builder.conditions`).
        join: List of `(join type, table, on)` entries.
        group_by: GROUP BY columns.
        having: HAVING condition.
        order_by: Normalized ORDER BY pairs.
        limit: Row limit.
        offset: Row offset.
        union: List of `(query, all)` entries.
        params: Values bound to named placeholders.
        index_by: Column name or callable used to key result rows.
        emulate_execution: Skip the daemon and return empty results.
        match: Fulltext query text or raw `Expression`.
        within: Normalized WITHIN GROUP ORDER BY pairs.
        options: OPTION clause values.
        group_limit: Top N matches per group, effective only with group_by.
        facets: Facet declarations as tagged variants.
        show_meta: Whether (or with which LIKE pattern) to append SHOW META.
        snippet_callback: Callable returning snippet source texts for rows.
        snippet_options: CALL SNIPPETS options.
    """

    select: list[Any] | None = None
    select_option: str | None = None
    distinct: bool = False
    from_: list[str] | dict[str, Any] | None = None
    where: Any = None
    join: list[tuple[str, Any, Any]] = field(default_factory=list)
    group_by: list[Any] | None = None
    having: Any = None
    order_by: list[OrderPair] | None = None
    limit: int | None = None
    offset: int | None = None
    union: list[tuple[Any, bool]] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    index_by: str | Callable[[Row], Any] | None = None
    emulate_execution: bool = False
    match: str | Expression | None = None
    within: list[OrderPair] | None = None
    options: dict[str, Any] | None = None
    group_limit: int | None = None
    facets: list[FacetInput] = field(default_factory=list)
    show_meta: bool | str | Expression = False
    snippet_callback: SnippetCallback | None = None
    snippet_options: dict[str, Any] | None = None

    def copy(self, **changes: Any) -> QueryParts:
        """Return an independent copy, optionally overriding some fields."""
        copied: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            copied[f.name] = value
        copied.update(changes)
        return QueryParts(**copied)


class Query:
    """SELECT statement descriptor for a Sphinx searchd daemon."""

    def __init__(self, connection: Connection | None = None) -> None:
        self.parts = QueryParts()
        self._connection = connection

    @classmethod
    def create(cls, source: Query) -> Query:
        """Create a query copying every builder clause of `source`.

        Facets and SHOW META are not copied; the copy always yields a single
        result set.
        """
        query = cls(source._connection)
        query.parts = source.parts.copy(facets=[], show_meta=False)
        return query

    # -- connection -------------------------------------------------------

    def set_connection(self, connection: Connection | None) -> Query:
        self._connection = connection
        return self

    def get_connection(self) -> Connection:
        """Return the connection used for execution.

        Raises:
            InvalidCallError: If no connection was given.
        """
        if self._connection is None:
            raise InvalidCallError(
                "Unable to execute query: connection should be specified.",
                field="connection",
            )
        return self._connection

    def create_command(self, db: Connection | None = None) -> Command:
        """Build the statement and wrap it in a `Command` ready for execution.

        Args:
            db: Connection to use. Remembered for later calls when given.
        """
        if db is not None:
            self._connection = db
        connection = self.get_connection()
        sql, params = connection.get_query_builder().build(self)
        return connection.create_command(sql, params)

    # -- relational clauses ----------------------------------------------

    def select(self, columns: str | Expression | Sequence[Any] | Mapping[str, Any], option: str | None = None) -> Query:
        self.parts.select = _normalize_select(columns)
        self.parts.select_option = option
        return self

    def add_select(self, columns: str | Expression | Sequence[Any] | Mapping[str, Any]) -> Query:
        extra = _normalize_select(columns)
        if self.parts.select is None:
            self.parts.select = extra
        else:
            self.parts.select = self.parts.select + extra
        return self

    def distinct(self, value: bool = True) -> Query:
        self.parts.distinct = value
        return self

    def from_(self, tables: str | Sequence[str] | Mapping[str, Any]) -> Query:
        """Set the FROM part.

        Args:
            tables: `"idx_a, idx_b"`, a list of index names, or a mapping
                alias -> index name or sub-query (`Query`).
        """
        if isinstance(tables, str):
            self.parts.from_ = split_columns(tables)
        elif isinstance(tables, Mapping):
            self.parts.from_ = dict(tables)
        else:
            self.parts.from_ = list(tables)
        return self

    def where(self, condition: Any, params: Mapping[str, Any] | None = None) -> Query:
        self.parts.where = condition
        return self.add_params(params)

    def and_where(self, condition: Any, params: Mapping[str, Any] | None = None) -> Query:
        if self.parts.where is None:
            self.parts.where = condition
        else:
            self.parts.where = ["and", self.parts.where, condition]
        return self.add_params(params)

    def or_where(self, condition: Any, params: Mapping[str, Any] | None = None) -> Query:
        if self.parts.where is None:
            self.parts.where = condition
        else:
            self.parts.where = ["or", self.parts.where, condition]
        return self.add_params(params)

    def params(self, params: Mapping[str, Any]) -> Query:
        self.parts.params = dict(params)
        return self

    def add_params(self, params: Mapping[str, Any] | None) -> Query:
        if params:
            self.parts.params.update(params)
        return self

    def join(self, join_type: str, table: Any, on: Any = "", params: Mapping[str, Any] | None = None) -> Query:
        self.parts.join.append((join_type, table, on))
        return self.add_params(params)

    def inner_join(self, table: Any, on: Any = "", params: Mapping[str, Any] | None = None) -> Query:
        return self.join("INNER JOIN", table, on, params)

    def left_join(self, table: Any, on: Any = "", params: Mapping[str, Any] | None = None) -> Query:
        return self.join("LEFT JOIN", table, on, params)

    def right_join(self, table: Any, on: Any = "", params: Mapping[str, Any] | None = None) -> Query:
        raise NotSupportedError(f'"{type(self).__name__}.right_join" is not supported.')

    def group_by(self, columns: str | Expression | Sequence[Any]) -> Query:
        self.parts.group_by = _normalize_columns(columns)
        return self

    def add_group_by(self, columns: str | Expression | Sequence[Any]) -> Query:
        extra = _normalize_columns(columns)
        self.parts.group_by = extra if self.parts.group_by is None else self.parts.group_by + extra
        return self

    def having(self, condition: Any, params: Mapping[str, Any] | None = None) -> Query:
        self.parts.having = condition
        return self.add_params(params)

    def order_by(self, columns: Any) -> Query:
        self.parts.order_by = normalize_order_by(columns)
        return self

    def add_order_by(self, columns: Any) -> Query:
        self.parts.order_by = merge_order_by(self.parts.order_by, normalize_order_by(columns))
        return self

    def limit(self, limit: int | None) -> Query:
        self.parts.limit = limit
        return self

    def offset(self, offset: int | None) -> Query:
        self.parts.offset = offset
        return self

    def union(self, query: Query | str, all: bool = False) -> Query:  # noqa: A002 - SQL keyword
        self.parts.union.append((query, all))
        return self

    def index_by(self, column: str | Callable[[Row], Any] | None) -> Query:
        self.parts.index_by = column
        return self

    def emulate_execution(self, value: bool = True) -> Query:
        self.parts.emulate_execution = value
        return self

    def get_tables_used_in_from(self) -> dict[str, str]:
        """Not supported by the SphinxQL dialect; always empty."""
        return {}

    # -- search clauses ---------------------------------------------------

    def match(self, query: str | Expression | None) -> Query:
        """Set the fulltext query text composed into MATCH() in WHERE.

        Plain strings are escaped with `escape_match_value`; use an
        `Expression` to pass a complex match condition verbatim.
        """
        self.parts.match = query
        return self

    def within(self, columns: Any) -> Query:
        """Set WITHIN GROUP ORDER BY, which picks the best row of each group.

        Accepts the same formats as `order_by`. Columns containing
        parentheses are treated as expressions and left unquoted.
        """
        self.parts.within = normalize_order_by(columns)
        return self

    def add_within(self, columns: Any) -> Query:
        self.parts.within = merge_order_by(self.parts.within, normalize_order_by(columns))
        return self

    def options(self, options: Mapping[str, Any] | None) -> Query:
        self.parts.options = dict(options) if options is not None else None
        return self

    def add_options(self, options: Mapping[str, Any]) -> Query:
        if self.parts.options is None:
            self.parts.options = dict(options)
        else:
            self.parts.options.update(options)
        return self

    def group_limit(self, limit: int | None) -> Query:
        """Return no more than `limit` top matches per group; needs `group_by`."""
        self.parts.group_limit = limit
        return self

    def facets(self, facets: Mapping[Any, Any] | Sequence[Any] | None) -> Query:
        """Set FACET declarations, fetched by `search()`.

        Example:

            query.facets([
                "group_id",
                {"brand_id": {"order": {"COUNT(*)": SORT_ASC}}},
                {"price": {
                    "select": "INTERVAL(price,200,400,600,800) AS price",
                    "order": {"FACET()": SORT_ASC},
                }},
            ])

        A custom select must contain a column named after the facet.
        """
        self.parts.facets = parse_facets(facets)
        return self

    def add_facets(self, facets: Mapping[Any, Any] | Sequence[Any]) -> Query:
        self.parts.facets = merge_facets(self.parts.facets, parse_facets(facets))
        return self

    def show_meta(self, show_meta: bool | str | Expression) -> Query:
        """Request SHOW META after the search; a string is used as LIKE pattern."""
        self.parts.show_meta = show_meta
        return self

    def snippet_callback(self, callback: SnippetCallback | None) -> Query:
        self.parts.snippet_callback = callback
        return self

    def snippet_options(self, options: Mapping[str, Any] | None) -> Query:
        self.parts.snippet_options = dict(options) if options is not None else None
        return self

    # -- execution --------------------------------------------------------

    def populate(self, rows: list[Row]) -> list[Row] | dict[Any, Row]:
        """Fill snippets into raw rows and key them by `index_by` if set."""
        rows = fill_up_snippets(self, rows)
        index_by = self.parts.index_by
        if index_by is None:
            return rows
        if callable(index_by):
            return {index_by(row): row for row in rows}
        return {row[index_by]: row for row in rows}

    def all(self, db: Connection | None = None) -> list[Row] | dict[Any, Row]:  # noqa: A003 - query API name
        if self.parts.emulate_execution:
            return []
        rows = self.create_command(db).query_all()
        return self.populate(rows)

    def one(self, db: Connection | None = None) -> Row | None:
        if self.parts.emulate_execution:
            return None
        row = self.create_command(db).query_one()
        if row is not None:
            (row,) = fill_up_snippets(self, [row])
        return row

    def column(self, db: Connection | None = None) -> list[Any] | dict[Any, Any]:
        if self.parts.emulate_execution:
            return []
        command = self.create_command(db)
        index_by = self.parts.index_by
        if index_by is None:
            return command.query_column()
        rows = command.query_all()
        out: dict[Any, Any] = {}
        for row in rows:
            key = index_by(row) if callable(index_by) else row[index_by]
            out[key] = next(iter(row.values()), None)
        return out

    def scalar(self, db: Connection | None = None) -> Any:
        if self.parts.emulate_execution:
            return None
        return self.create_command(db).query_scalar()

    def count(self, q: str = "*", db: Connection | None = None) -> Any:
        return self._query_scalar(f"COUNT({q})", db)

    def sum(self, q: str, db: Connection | None = None) -> Any:  # noqa: A003 - query API name
        return self._query_scalar(f"SUM({q})", db)

    def average(self, q: str, db: Connection | None = None) -> Any:
        return self._query_scalar(f"AVG({q})", db)

    def min(self, q: str, db: Connection | None = None) -> Any:  # noqa: A003 - query API name
        return self._query_scalar(f"MIN({q})", db)

    def max(self, q: str, db: Connection | None = None) -> Any:  # noqa: A003 - query API name
        return self._query_scalar(f"MAX({q})", db)

    def exists(self, db: Connection | None = None) -> bool:
        if self.parts.emulate_execution:
            return False
        if db is not None:
            self._connection = db
        return build_exists_query(self).create_command().query_scalar() is not None

    def search(self, db: Connection | None = None) -> SearchResult:
        """Execute the query and return hits, facets and meta in one result."""
        return execute_search(self, db)

    def _query_scalar(self, select_expression: str, db: Connection | None) -> Any:
        if self.parts.emulate_execution:
            return None
        if db is not None:
            self._connection = db
        return build_scalar_query(self, select_expression).create_command().query_scalar()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} from={self.parts.from_!r} match={self.parts.match!r}>"


def _normalize_select(columns: Any) -> list[Any]:
    if isinstance(columns, Mapping):
        return [(alias, column) for alias, column in columns.items()]
    return _normalize_columns(columns)


def _normalize_columns(columns: Any) -> list[Any]:
    if isinstance(columns, Expression):
        return [columns]
    if isinstance(columns, str):
        return split_columns(columns)
    return list(columns)


__all__ = ["Query", "QueryParts", "SnippetCallback"]
