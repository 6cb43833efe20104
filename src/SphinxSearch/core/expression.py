"""Raw SQL expressions and ORDER BY normalization."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Union

SORT_ASC = "ASC"
SORT_DESC = "DESC"

_RE_DIRECTION = re.compile(r"^(.*?)\s+(asc|desc)$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Expression:
    """SQL fragment inserted into a statement verbatim.

    Attributes:
        expression: Raw SQL text. Placeholders must use `%(name)s` syntax.
        params: Values bound to the placeholders used in `expression`.
    """

    expression: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.expression


OrderColumn = Union[str, Expression]
OrderPair = tuple[OrderColumn, Union[str, None]]


def split_columns(text: str) -> list[str]:
    """Split a comma separated column list, ignoring commas inside parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _is_normalized(columns: Any) -> bool:
    if not isinstance(columns, list):
        return False
    return all(
        isinstance(item, tuple)
        and len(item) == 2
        and isinstance(item[0], (str, Expression))
        and item[1] in (SORT_ASC, SORT_DESC, None)
        for item in columns
    )


def normalize_order_by(
    columns: str | Expression | Mapping[str, Any] | Sequence[Any],
) -> list[OrderPair]:
    """Normalize ORDER BY input into `(column, direction)` pairs.

    Accepted inputs:
    - `"id ASC, name DESC"`: direction defaults to ASC when omitted
    - `{"id": SORT_ASC, "name": SORT_DESC}`
    - `Expression`: kept as a raw entry with no direction
    - a list of already normalized pairs, returned unchanged

    Args:
        columns: Columns with optional directions.

    Returns:
        Ordered list of `(column, direction)` pairs.
    """
    if _is_normalized(columns):
        return columns  # type: ignore[return-value]
    if isinstance(columns, Expression):
        return [(columns, None)]
    if isinstance(columns, Mapping):
        return [(name, _direction(direction)) for name, direction in columns.items()]
    if isinstance(columns, str):
        pairs: list[OrderPair] = []
        for part in split_columns(columns):
            match = _RE_DIRECTION.match(part)
            if match:
                pairs.append((match.group(1).strip(), match.group(2).upper()))
            else:
                pairs.append((part, SORT_ASC))
        return pairs

    pairs = []
    for item in columns:
        if isinstance(item, tuple) and len(item) == 2:
            pairs.append((item[0], _direction(item[1])))
        elif isinstance(item, Expression):
            pairs.append((item, None))
        else:
            pairs.extend(normalize_order_by(str(item)))
    return pairs


def merge_order_by(existing: list[OrderPair] | None, extra: list[OrderPair]) -> list[OrderPair]:
    """Append order pairs; a column already present keeps its slot and takes the new direction."""
    if existing is None:
        return list(extra)
    merged = list(existing)
    for column, direction in extra:
        for idx, (current, _) in enumerate(merged):
            if isinstance(column, str) and current == column:
                merged[idx] = (column, direction)
                break
        else:
            merged.append((column, direction))
    return merged


def _direction(value: Any) -> str:
    if isinstance(value, str) and value.upper() in (SORT_ASC, SORT_DESC):
        return value.upper()
    raise ValueError(f"Invalid sort direction: {value!r}")
