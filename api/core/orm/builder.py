"""
Fluent query builder.

A `Model` is obtained from `Orm.table(name)`, configured by chaining and
finished by one awaited terminal call:

    user = await orm.table("users").select("id", "email").where("id", "=", 42).first()

Configuration methods mutate the builder and return it. A builder belongs to
one task from creation to its terminal call; it is not safe to share.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from . import executor
from .clauses import (
    CROSS_JOIN,
    INNER_JOIN,
    LEFT_JOIN,
    RIGHT_JOIN,
    Having,
    Join,
    Predicate,
    QueryDescriptor,
    normalize_operator,
    render_where,
)
from .errors import ExecutionError, InvalidArgumentError, NotFoundError
from .sanitize import sanitize_identifier, sanitize_identifiers

if TYPE_CHECKING:
    from .orm import Orm

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Model:
    def __init__(self, orm: Orm, table: str) -> None:
        self._orm = orm
        self._timeout: float | None = orm.config.query_timeout
        self.query = QueryDescriptor(table=sanitize_identifier(table))

    @property
    def table(self) -> str:
        return self.query.table

    def with_timeout(self, timeout: float | None) -> Model:
        """
        Bound the terminal call (connection wait included) to `timeout` seconds.

        None removes the deadline.
        """
        self._timeout = timeout
        return self

    def select(self, *columns: str) -> Model:
        if not columns:
            raise InvalidArgumentError("select needs at least one column", operation="select")
        self.query.selections = sanitize_identifiers(columns)
        return self

    def where(self, column: str, operator: str, value: Any = None) -> Model:
        self.query.wheres.append(self._predicate(column, operator, value, "where"))
        return self

    def or_where(self, column: str, operator: str, value: Any = None) -> Model:
        self.query.or_wheres.append(self._predicate(column, operator, value, "or_where"))
        return self

    @staticmethod
    def _predicate(column: str, operator: str, value: Any, operation: str) -> Predicate:
        op = normalize_operator(operator, operation=operation)
        return Predicate(column=sanitize_identifier(column), operator=op, value=value)

    def join(self, table: str, condition: str, *args: Any) -> Model:
        return self._add_join(INNER_JOIN, table, condition, args)

    def left_join(self, table: str, condition: str, *args: Any) -> Model:
        return self._add_join(LEFT_JOIN, table, condition, args)

    def right_join(self, table: str, condition: str, *args: Any) -> Model:
        return self._add_join(RIGHT_JOIN, table, condition, args)

    def cross_join(self, table: str) -> Model:
        return self._add_join(CROSS_JOIN, table, "", ())

    def _add_join(self, join_type: str, table: str, condition: str, args: tuple[Any, ...]) -> Model:
        # The condition goes in verbatim; it is the caller's SQL.
        self.query.joins.append(
            Join(join_type=join_type, table=sanitize_identifier(table), condition=condition, args=args)
        )
        return self

    def group_by(self, *columns: str) -> Model:
        self.query.group_by = sanitize_identifiers(columns)
        return self

    def having(self, condition: str, *args: Any) -> Model:
        self.query.having.append(Having(condition=condition, args=args))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> Model:
        self.query.order_by = sanitize_identifier(column)
        self.query.order_dir = sanitize_identifier(direction).upper()
        return self

    def limit(self, limit: int) -> Model:
        self.query.limit = int(limit)
        return self

    def offset(self, offset: int) -> Model:
        self.query.offset = int(offset)
        return self

    # Rendering

    def build_select(self) -> tuple[str, list[Any]]:
        q = self.query
        parts = [f"SELECT {', '.join(q.selections)} FROM {q.table}"]
        values: list[Any] = []

        for join in q.joins:
            parts.append(join.render())
            if join.condition:
                values.extend(join.args)

        where_sql, where_values = render_where(q.wheres, q.or_wheres, len(values) + 1)
        parts.append(where_sql)
        values.extend(where_values)

        if q.group_by:
            parts.append(" GROUP BY " + ", ".join(q.group_by))

        if q.having:
            parts.append(" HAVING " + " AND ".join(h.condition for h in q.having))
            for having in q.having:
                values.extend(having.args)

        if q.order_by:
            parts.append(f" ORDER BY {q.order_by} {q.order_dir}".rstrip())

        if q.limit > 0:
            parts.append(f" LIMIT {q.limit}")
        if q.offset > 0:
            parts.append(f" OFFSET {q.offset}")

        return "".join(parts), values

    def build_insert(self, fields: Mapping[str, Any]) -> tuple[str, list[Any]]:
        if not fields:
            raise InvalidArgumentError("invalid value: no fields to insert", operation="create")

        columns = sanitize_identifiers(fields.keys())
        values = list(fields.values())
        placeholders = [f"${i}" for i in range(1, len(values) + 1)]
        sql = (
            f"INSERT INTO {self.query.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        return sql, values

    def build_update(self, fields: Mapping[str, Any]) -> tuple[str, list[Any]]:
        if not fields:
            raise InvalidArgumentError("invalid value: no fields to update", operation="update")

        sets: list[str] = []
        values: list[Any] = []
        for i, (column, value) in enumerate(fields.items(), start=1):
            sets.append(f"{sanitize_identifier(column)} = ${i}")
            values.append(value)

        where_sql, where_values = render_where(self.query.wheres, self.query.or_wheres, len(values) + 1)
        values.extend(where_values)
        return f"UPDATE {self.query.table} SET {', '.join(sets)}{where_sql}", values

    def build_delete(self) -> tuple[str, list[Any]]:
        where_sql, values = render_where(self.query.wheres, self.query.or_wheres, 1)
        return f"DELETE FROM {self.query.table}{where_sql}", values

    # Terminal operations

    async def get(self) -> list[dict[str, Any]]:
        sql, args = self.build_select()
        return await executor.run_with_timeout(self._fetch(sql, args, "get"), self._timeout, operation="get")

    async def first(self) -> dict[str, Any]:
        self.query.limit = 1
        rows = await self.get()
        if not rows:
            raise NotFoundError(operation="first")
        return rows[0]

    async def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        if not fields:
            raise InvalidArgumentError("invalid value: no fields to insert", operation="create")

        # Copy so the caller's mapping is left alone.
        data = dict(fields)
        now = _utc_now()
        for column in TIMESTAMP_COLUMNS:
            if column not in data:
                data[column] = now

        sql, args = self.build_insert(data)
        rows = await executor.run_with_timeout(self._fetch(sql, args, "create"), self._timeout, operation="create")
        if not rows:
            raise ExecutionError("no data returned after insert", operation="create")
        return rows[0]

    async def update(self, fields: Mapping[str, Any]) -> int:
        sql, args = self.build_update(fields)
        return await executor.run_with_timeout(self._execute(sql, args, "update"), self._timeout, operation="update")

    async def delete(self) -> int:
        sql, args = self.build_delete()
        return await executor.run_with_timeout(self._execute(sql, args, "delete"), self._timeout, operation="delete")

    async def _fetch(self, sql: str, args: list[Any], operation: str) -> list[dict[str, Any]]:
        statement = await self._orm.prepare(sql)
        return await executor.fetch_all(statement, args, operation=operation, query_log=self._orm.config.query_log)

    async def _execute(self, sql: str, args: list[Any], operation: str) -> int:
        statement = await self._orm.prepare(sql)
        return await executor.execute(statement, args, operation=operation, query_log=self._orm.config.query_log)

    def __repr__(self) -> str:
        return f"Model(table={self.query.table!r})"
