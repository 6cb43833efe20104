"""WHERE / HAVING condition compilation.

Conditions are accepted in these formats:

- raw string: `"price > 10"`
- `Expression`: inserted verbatim with its params
- hash: `{"brand_id": 5, "group_id": [1, 2]}` (AND of equalities / IN)
- operator list: `["and", c1, c2]`, `["or", c1, c2]`, `["not", c]`,
  `["in", "id", [1, 2]]`, `["not in", ...]`, `["between", "price", 1, 9]`,
  `["not between", ...]` and binary comparisons such as `[">=", "price", 10]`
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from SphinxSearch.core.errors import NotSupportedError
from SphinxSearch.core.expression import Expression

PARAM_PREFIX = "qp"

_COMPARISONS = frozenset({"=", "!=", "<>", "<", ">", "<=", ">="})


def quote_name(name: str) -> str:
    """Back-quote a column or index name.

    Names containing parentheses, `*` or back quotes are expressions and are
    returned as is. Dotted names are quoted part by part.
    """
    if "(" in name or "*" in name or "`" in name:
        return name
    return ".".join(f"`{part}`" for part in name.split("."))


class ConditionBuilder:
    """Compile condition structures into SQL with bound parameters."""

    def bind_value(self, value: Any, params: dict[str, Any]) -> str:
        """Bind `value` under a fresh placeholder and return the placeholder."""
        idx = len(params)
        name = f"{PARAM_PREFIX}{idx}"
        while name in params:
            idx += 1
            name = f"{PARAM_PREFIX}{idx}"
        params[name] = value
        return f"%({name})s"

    def is_compound(self, condition: Any) -> bool:
        """Whether `condition` needs parentheses when AND-ed with other parts."""
        if isinstance(condition, (str, Expression)):
            return True
        if isinstance(condition, Sequence) and condition:
            return str(condition[0]).lower() in ("or", "and", "not")
        return False

    def build_condition(self, condition: Any, params: dict[str, Any]) -> str:
        """Compile `condition`; returns an empty string for empty conditions.

        Raises:
            NotSupportedError: If an operator is unknown to SphinxQL.
        """
        if condition is None or condition == "" or condition == [] or condition == {}:
            return ""
        if isinstance(condition, Expression):
            params.update(condition.params)
            return condition.expression
        if isinstance(condition, str):
            return condition
        if isinstance(condition, Mapping):
            return self.build_hash_condition(condition, params)

        operator = str(condition[0]).lower()
        operands = list(condition[1:])
        if operator in ("and", "or"):
            return self.build_and_condition(operator.upper(), operands, params)
        if operator == "not":
            inner = self.build_condition(operands[0] if operands else None, params)
            return f"NOT ({inner})" if inner else ""
        if operator in ("in", "not in"):
            return self.build_in_condition(operator.upper(), operands, params)
        if operator in ("between", "not between"):
            return self.build_between_condition(operator.upper(), operands, params)
        if operator in _COMPARISONS:
            return self.build_simple_condition(operator, operands, params)
        raise NotSupportedError(f"Condition operator is not supported: {condition[0]!r}")

    def build_hash_condition(self, condition: Mapping[str, Any], params: dict[str, Any]) -> str:
        parts: list[str] = []
        for column, value in condition.items():
            if isinstance(value, (list, tuple, set, frozenset)) or hasattr(value, "parts"):
                parts.append(self.build_in_condition("IN", [column, value], params))
            elif value is None:
                parts.append(f"{quote_name(column)} IS NULL")
            elif isinstance(value, Expression):
                params.update(value.params)
                parts.append(f"{quote_name(column)}={value.expression}")
            else:
                parts.append(f"{quote_name(column)}={self.bind_value(value, params)}")
        if len(parts) == 1:
            return parts[0]
        return " AND ".join(parts)

    def build_and_condition(self, operator: str, operands: Sequence[Any], params: dict[str, Any]) -> str:
        built = [(operand, self.build_condition(operand, params)) for operand in operands]
        built = [(operand, sql) for operand, sql in built if sql]
        if len(built) == 1:
            return built[0][1]
        return f" {operator} ".join(
            f"({sql})" if self.is_compound(operand) else sql for operand, sql in built
        )

    def build_in_condition(self, operator: str, operands: Sequence[Any], params: dict[str, Any]) -> str:
        if len(operands) != 2:
            raise NotSupportedError(f"Operator '{operator}' requires two operands")
        column, values = operands
        if hasattr(values, "parts"):
            sub_sql, params_out = self.build(values, params)  # type: ignore[attr-defined]
            params.update(params_out)
            return f"{quote_name(column)} {operator} ({sub_sql})"
        values = list(values)
        if not values:
            return "0=1" if operator == "IN" else ""
        placeholders = ", ".join(self.bind_value(value, params) for value in values)
        return f"{quote_name(column)} {operator} ({placeholders})"

    def build_between_condition(self, operator: str, operands: Sequence[Any], params: dict[str, Any]) -> str:
        if len(operands) != 3:
            raise NotSupportedError(f"Operator '{operator}' requires three operands")
        column, low, high = operands
        return (
            f"{quote_name(column)} {operator} "
            f"{self.bind_value(low, params)} AND {self.bind_value(high, params)}"
        )

    def build_simple_condition(self, operator: str, operands: Sequence[Any], params: dict[str, Any]) -> str:
        if len(operands) != 2:
            raise NotSupportedError(f"Operator '{operator}' requires two operands")
        column, value = operands
        if value is None:
            return f"{quote_name(column)} {operator} NULL"
        if isinstance(value, Expression):
            params.update(value.params)
            return f"{quote_name(column)} {operator} {value.expression}"
        return f"{quote_name(column)} {operator} {self.bind_value(value, params)}"
