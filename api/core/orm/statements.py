"""
Prepared statement cache shared by every builder of one pool.

asyncpg prepares statements per connection, so a `PreparedStatement` here is
the pool-level handle for one SQL text. The server describes it once, when it
is first compiled, which validates the SQL and records its result columns.
Executions go through `Connection.fetch` / `Connection.execute`, so each
connection parses the text once and reuses it from asyncpg's statement cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import asyncpg

from .errors import CleanupError, PoolClosedError, PrepareError

logger = logging.getLogger(__name__)

DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def rows_affected(status: str | None) -> int:
    """
    Parse the affected-row count out of a command status tag.

    "UPDATE 3" -> 3, "INSERT 0 1" -> 1, "SELECT 2" -> 2.
    """
    parts = (status or "").split()
    if not parts:
        return 0
    try:
        return int(parts[-1])
    except ValueError:
        return 0


class PreparedStatement:
    def __init__(self, pool: asyncpg.Pool, sql: str, *, columns: Sequence[str] = ()) -> None:
        self._pool = pool
        self.sql = sql
        self.columns = tuple(columns)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise PoolClosedError(f"statement is closed: {self.sql}")

    async def fetch(self, args: Sequence[Any]) -> list[asyncpg.Record]:
        self._check_open()
        async with self._pool.acquire() as conn:
            return await conn.fetch(self.sql, *args)

    async def execute(self, args: Sequence[Any]) -> int:
        """
        Run a write statement and return the number of affected rows.
        """
        self._check_open()
        async with self._pool.acquire() as conn:
            return rows_affected(await conn.execute(self.sql, *args))

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        return f"PreparedStatement(sql={self.sql!r}, closed={self._closed})"


class StatementCache:
    """
    SQL text -> `PreparedStatement`, at most one handle per distinct text.

    Lookups take no lock. A miss takes the lock and looks again before
    preparing, so tasks racing on the same new SQL share one handle.
    `close()` is a shutdown-time operation; do not run it alongside queries.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool
        self._statements: dict[str, PreparedStatement] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, sql: object) -> bool:
        return sql in self._statements

    async def compile(self, sql: str) -> PreparedStatement:
        statement = self._statements.get(sql)
        if statement is not None:
            return statement

        async with self._lock:
            # Another task may have prepared it while we waited.
            statement = self._statements.get(sql)
            if statement is None:
                statement = await self._prepare(sql)
                self._statements[sql] = statement
        return statement

    async def _prepare(self, sql: str) -> PreparedStatement:
        try:
            async with self._pool.acquire() as conn:
                prepared = await conn.prepare(sql)
        except DRIVER_ERRORS as exc:
            raise PrepareError(f"prepare query error: {exc}", operation="prepare") from exc

        columns = [attr.name for attr in prepared.get_attributes()]
        logger.debug("statement_prepared columns=%s sql=%s", len(columns), sql)
        return PreparedStatement(self._pool, sql, columns=columns)

    async def close(self) -> None:
        """
        Close every cached handle and empty the cache.

        Raises `CleanupError` carrying every individual failure.
        """
        errors: list[BaseException] = []
        async with self._lock:
            for sql, statement in self._statements.items():
                try:
                    statement.close()
                except Exception as exc:
                    logger.warning("statement_close_failed sql=%s error=%s", sql, exc)
                    errors.append(exc)
            self._statements = {}

        if errors:
            raise CleanupError(errors)
