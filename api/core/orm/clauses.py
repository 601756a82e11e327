"""
Clause value objects and WHERE rendering.

Placeholders follow asyncpg: `$1, $2, ...`, numbered across the whole
statement by the caller-supplied start index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidOperatorError

VALID_OPERATORS = frozenset(
    {
        "=",
        "<>",
        ">",
        "<",
        ">=",
        "<=",
        "LIKE",
        "NOT LIKE",
        "IN",
        "NOT IN",
        "IS NULL",
        "IS NOT NULL",
    }
)

# These compare against nothing, so they bind no value.
NULL_OPERATORS = frozenset({"IS NULL", "IS NOT NULL"})

INNER_JOIN = "INNER JOIN"
LEFT_JOIN = "LEFT JOIN"
RIGHT_JOIN = "RIGHT JOIN"
CROSS_JOIN = "CROSS JOIN"


def normalize_operator(op: str, *, operation: str | None = None) -> str:
    """
    Upper-case `op` and check it against the allow-list.

    Raises `InvalidOperatorError` for anything else.
    """
    normalized = " ".join(str(op or "").split()).upper()
    if normalized not in VALID_OPERATORS:
        raise InvalidOperatorError(op, operation=operation)
    return normalized


@dataclass(frozen=True)
class Predicate:
    column: str
    operator: str
    value: Any = None

    @property
    def binds_value(self) -> bool:
        return self.operator not in NULL_OPERATORS

    def render(self, index: int) -> str:
        if not self.binds_value:
            return f"{self.column} {self.operator}"
        # Postgres has no `IN $1`; a list is bound as one array parameter.
        if self.operator == "IN":
            return f"{self.column} = ANY(${index})"
        if self.operator == "NOT IN":
            return f"{self.column} <> ALL(${index})"
        return f"{self.column} {self.operator} ${index}"


@dataclass(frozen=True)
class Join:
    join_type: str
    table: str
    condition: str = ""
    args: tuple[Any, ...] = ()

    def render(self) -> str:
        if self.condition:
            return f" {self.join_type} {self.table} ON {self.condition}"
        return f" {self.join_type} {self.table}"


@dataclass(frozen=True)
class Having:
    condition: str
    args: tuple[Any, ...] = ()


@dataclass
class QueryDescriptor:
    table: str
    selections: list[str] = field(default_factory=list)
    wheres: list[Predicate] = field(default_factory=list)
    or_wheres: list[Predicate] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    having: list[Having] = field(default_factory=list)
    order_by: str = ""
    order_dir: str = ""
    limit: int = 0
    offset: int = 0

    def __post_init__(self) -> None:
        if not self.selections:
            self.selections = [f"{self.table}.*"]


def render_where(
    wheres: list[Predicate],
    or_wheres: list[Predicate],
    start: int = 1,
) -> tuple[str, list[Any]]:
    """
    Render ` WHERE ...` for the AND-group followed by the OR-group.

    Returns ("", []) when both groups are empty. The OR-group is joined to the
    AND-group with ` OR ` only when the AND-group is non-empty.
    """
    if not wheres and not or_wheres:
        return "", []

    parts: list[str] = []
    values: list[Any] = []
    index = start

    for i, where in enumerate(wheres):
        if i > 0:
            parts.append(" AND ")
        parts.append(where.render(index))
        if where.binds_value:
            values.append(where.value)
            index += 1

    for i, or_where in enumerate(or_wheres):
        if wheres or i > 0:
            parts.append(" OR ")
        parts.append(or_where.render(index))
        if or_where.binds_value:
            values.append(or_where.value)
            index += 1

    return " WHERE " + "".join(parts), values
