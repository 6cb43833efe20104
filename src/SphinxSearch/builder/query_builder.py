"""SphinxQL statement builder.

Compiles a `Query` into SphinxQL text plus bound parameters. Placeholders use
the DB-API `pyformat` style (`%(qp0)s`). Once a statement binds any
parameter, a literal `%` inside raw SQL fragments must be written as `%%`.

Clause order follows the searchd grammar:

    SELECT ... FROM ... WHERE MATCH(...) AND ... GROUP [N] BY ...
    WITHIN GROUP ORDER BY ... HAVING ... ORDER BY ... LIMIT ...
    OPTION ... FACET ... [; SHOW META [LIKE ...]]
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from SphinxSearch.builder.conditions import ConditionBuilder, quote_name
from SphinxSearch.core.errors import NotSupportedError
from SphinxSearch.core.expression import Expression, OrderPair, normalize_order_by, split_columns
from SphinxSearch.core.facets import FacetInput, normalize_facets

if TYPE_CHECKING:
    from SphinxSearch.core.query import Query

DEFAULT_MAX_LIMIT = 1000

_RE_ALIAS = re.compile(r"^(.*?)(?:\s+as)?\s+([\w\-_.]+)$", re.IGNORECASE)

_MATCH_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "/": "\\/",
        '"': '\\"',
        "(": "\\(",
        ")": "\\)",
        "|": "\\|",
        "-": "\\-",
        "!": "\\!",
        "@": "\\@",
        "~": "\\~",
        "&": "\\&",
        "^": "\\^",
        "$": "\\$",
        "=": "\\=",
        ">": "\\>",
        "<": "\\<",
        "\x00": "\\x00",
        "\n": "\\n",
        "\r": "\\r",
        "\x1a": "\\x1a",
    }
)


def escape_match_value(text: str) -> str:
    """Escape fulltext query operators so `text` is matched literally."""
    return text.translate(_MATCH_ESCAPES)


class QueryBuilder(ConditionBuilder):
    """Build SphinxQL statements from `Query` descriptors."""

    separator = " "

    def build(self, query: Query, params: Mapping[str, Any] | None = None) -> tuple[str, dict[str, Any]]:
        """Compile `query` into `(sql, params)`.

        Args:
            query: Query to compile.
            params: Extra bound parameters; the query's own params win.

        Returns:
            Statement text and the parameters bound to it.
        """
        bound: dict[str, Any] = dict(params or {})
        parts = query.parts
        bound.update(parts.params)

        clauses = [
            self.build_select(parts.select, bound, parts.distinct, parts.select_option),
            self.build_from(parts.from_, bound),
            self.build_join(parts.join, bound),
            self.build_where(parts.where, bound, parts.match),
            self.build_group_by(parts.group_by, parts.group_limit),
            self.build_within(parts.within),
            self.build_having(parts.having, bound),
            self.build_order_by(parts.order_by),
            self.build_limit(parts.limit, parts.offset),
            self.build_option(parts.options, bound),
            self.build_facets(parts.facets, bound),
        ]
        sql = self.separator.join(clause for clause in clauses if clause)

        if parts.union:
            sql = f"({sql}){self.separator}{self.build_union(parts.union, bound)}"
        if parts.show_meta:
            sql = f"{sql}; {self.build_show_meta(parts.show_meta, bound)}"
        return sql, bound

    def build_select(
        self,
        columns: Sequence[Any] | None,
        params: dict[str, Any],
        distinct: bool = False,
        select_option: str | None = None,
    ) -> str:
        select = "SELECT DISTINCT" if distinct else "SELECT"
        if select_option:
            select += f" {select_option}"
        if not columns:
            return f"{select} *"
        return f"{select} {self.build_columns(columns, params)}"

    def build_columns(self, columns: str | Sequence[Any], params: dict[str, Any]) -> str:
        if isinstance(columns, (str, Expression)):
            columns = [columns]
        out: list[str] = []
        for column in columns:
            if isinstance(column, tuple):
                alias, value = column
                out.append(f"{self._build_select_value(value, params)} AS {quote_name(alias)}")
            elif isinstance(column, str):
                for piece in split_columns(column):
                    out.append(self._quote_aliased(piece, " AS "))
            else:
                out.append(self._build_select_value(column, params))
        return ", ".join(out)

    def build_from(self, tables: Sequence[str] | Mapping[str, Any] | None, params: dict[str, Any]) -> str:
        if not tables:
            return ""
        if isinstance(tables, Mapping):
            out: list[str] = []
            for alias, table in tables.items():
                if hasattr(table, "parts"):
                    sub_sql, params_out = self.build(table, params)
                    params.update(params_out)
                    out.append(f"({sub_sql}) {quote_name(alias)}")
                elif isinstance(alias, int):
                    out.append(quote_name(table))
                else:
                    out.append(f"{quote_name(table)} {quote_name(alias)}")
            return "FROM " + ", ".join(out)
        return "FROM " + ", ".join(self._quote_aliased(table) for table in tables)

    def build_join(self, joins: Sequence[tuple[str, Any, Any]], params: dict[str, Any]) -> str:
        out: list[str] = []
        for join_type, table, on in joins:
            if not isinstance(table, str):
                raise NotSupportedError("Joined sources must be index names")
            clause = f"{join_type} {self._quote_aliased(table)}"
            condition = self.build_condition(on, params)
            if condition:
                clause += f" ON {condition}"
            out.append(clause)
        return self.separator.join(out)

    def build_where(self, condition: Any, params: dict[str, Any], match: str | Expression | None = None) -> str:
        parts: list[str] = []
        if match is not None:
            parts.append(self.build_match(match, params))
        where = self.build_condition(condition, params)
        if where:
            parts.append(f"({where})" if parts and self.is_compound(condition) else where)
        return "WHERE " + " AND ".join(parts) if parts else ""

    def build_match(self, match: str | Expression, params: dict[str, Any]) -> str:
        if isinstance(match, Expression):
            params.update(match.params)
            return f"MATCH({match.expression})"
        return f"MATCH({self.bind_value(escape_match_value(str(match)), params)})"

    def build_group_by(self, columns: Sequence[Any] | None, group_limit: int | None = None) -> str:
        if not columns:
            return ""
        rendered = ", ".join(
            column.expression if isinstance(column, Expression) else quote_name(column) for column in columns
        )
        if group_limit:
            return f"GROUP {int(group_limit)} BY {rendered}"
        return f"GROUP BY {rendered}"

    def build_within(self, columns: list[OrderPair] | None) -> str:
        if not columns:
            return ""
        return "WITHIN GROUP " + self.build_order_by(columns)

    def build_having(self, condition: Any, params: dict[str, Any]) -> str:
        having = self.build_condition(condition, params)
        return f"HAVING {having}" if having else ""

    def build_order_by(self, columns: list[OrderPair] | None) -> str:
        if not columns:
            return ""
        out: list[str] = []
        for column, direction in columns:
            if isinstance(column, Expression):
                out.append(column.expression)
            else:
                out.append(f"{quote_name(column)} {direction or 'ASC'}")
        return "ORDER BY " + ", ".join(out)

    def build_limit(self, limit: int | None, offset: int | None) -> str:
        sql = ""
        if offset is not None and int(offset) > 0:
            sql = f"LIMIT {int(offset)}"
        if limit is not None and int(limit) >= 0:
            return f"{sql},{int(limit)}" if sql else f"LIMIT {int(limit)}"
        if sql:
            # searchd applies max_matches=1000 when only an offset is given
            sql += f",{DEFAULT_MAX_LIMIT}"
        return sql

    def build_option(self, options: Mapping[str, Any] | None, params: dict[str, Any]) -> str:
        if not options:
            return ""
        lines: list[str] = []
        for name, value in options.items():
            if isinstance(value, Expression):
                params.update(value.params)
                lines.append(f"{name} = {value.expression}")
            elif isinstance(value, Mapping):
                inner = ", ".join(f"{key} = {self._option_value(item)}" for key, item in value.items())
                lines.append(f"{name} = ({inner})")
            else:
                lines.append(f"{name} = {self._option_value(value)}")
        return "OPTION " + ", ".join(lines)

    def build_facets(self, facets: Sequence[FacetInput], params: dict[str, Any]) -> str:
        out: list[str] = []
        for spec in normalize_facets(facets):
            select = spec.select if spec.select is not None else spec.value
            sql = f"FACET {self.build_columns(select, params)}"
            if spec.order is not None:
                sql += f" {self.build_order_by(normalize_order_by(spec.order))}"
            limit = self.build_limit(spec.limit, spec.offset)
            if limit:
                sql += f" {limit}"
            out.append(sql)
        return self.separator.join(out)

    def build_union(self, unions: Sequence[tuple[Any, bool]], params: dict[str, Any]) -> str:
        out: list[str] = []
        for query, union_all in unions:
            if hasattr(query, "parts"):
                query, params_out = self.build(query, params)
                params.update(params_out)
            keyword = "UNION ALL" if union_all else "UNION"
            out.append(f"{keyword} ( {query} )")
        return self.separator.join(out)

    def build_show_meta(self, show_meta: bool | str | Expression, params: dict[str, Any]) -> str:
        if isinstance(show_meta, Expression):
            params.update(show_meta.params)
            return f"SHOW META LIKE {show_meta.expression}"
        if isinstance(show_meta, str):
            return f"SHOW META LIKE {self.bind_value(show_meta, params)}"
        return "SHOW META"

    def build_call_snippets(
        self,
        index: str,
        sources: str | Sequence[str],
        match: str | Expression,
        options: Mapping[str, Any] | None,
        params: dict[str, Any],
    ) -> str:
        """Build a CALL SNIPPETS statement.

        Args:
            index: Index whose tokenizer settings are applied.
            sources: One source text or a list of them.
            match: Keywords to highlight.
            options: Snippet options, e.g. `{"limit": 200, "before_match": "<b>"}`.
            params: Bound parameters, updated in place.
        """
        if isinstance(sources, str):
            data_sql = self.bind_value(sources, params)
        else:
            data_sql = "(" + ", ".join(self.bind_value(source, params) for source in sources) + ")"
        index_sql = self.bind_value(index, params)
        if isinstance(match, Expression):
            params.update(match.params)
            match_sql = match.expression
        else:
            match_sql = self.bind_value(match, params)

        option_sql = ""
        if options:
            option_parts = [
                f"{self.bind_value(self._snippet_option_value(value), params)} AS {name}"
                for name, value in options.items()
            ]
            option_sql = ", " + ", ".join(option_parts)
        return f"CALL SNIPPETS({data_sql}, {index_sql}, {match_sql}{option_sql})"

    def _build_select_value(self, value: Any, params: dict[str, Any]) -> str:
        if isinstance(value, Expression):
            params.update(value.params)
            return value.expression
        if hasattr(value, "parts"):
            sub_sql, params_out = self.build(value, params)
            params.update(params_out)
            return f"({sub_sql})"
        return quote_name(str(value))

    def _quote_aliased(self, text: str, glue: str = " ") -> str:
        if "(" in text:
            return text
        match = _RE_ALIAS.match(text)
        if match:
            return f"{quote_name(match.group(1).strip())}{glue}{quote_name(match.group(2))}"
        return quote_name(text)

    @staticmethod
    def _option_value(value: Any) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)

    @staticmethod
    def _snippet_option_value(value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        return value
