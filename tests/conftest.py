from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any

import pytest

from core.orm import Orm, OrmConfig

Handler = Callable[[str, tuple], "tuple[list[dict[str, Any]], str]"]


def _default_handler(sql: str, args: tuple) -> tuple[list[dict[str, Any]], str]:
    return [], "SELECT 0"


class FakeStatement:
    """Stands in for `asyncpg.prepared_stmt.PreparedStatement`."""

    def __init__(self, pool: FakePool) -> None:
        self._pool = pool

    def get_attributes(self) -> list[SimpleNamespace]:
        return [SimpleNamespace(name=name) for name in self._pool.columns]


class FakeConnection:
    """
    Stands in for `asyncpg.Connection`.

    `prepare()` always goes to the server; `fetch()` / `execute()` parse a
    text once and reuse it from the connection's statement cache.
    """

    def __init__(self, pool: FakePool) -> None:
        self._pool = pool
        self.statement_cache: set[str] = set()

    async def prepare(self, sql: str) -> FakeStatement:
        self._pool.prepare_calls.append(sql)
        # Yield so racing tasks get a chance to interleave.
        await asyncio.sleep(self._pool.prepare_delay)
        if self._pool.prepare_error is not None:
            raise self._pool.prepare_error
        return FakeStatement(self._pool)

    async def _run(self, sql: str, args: tuple) -> tuple[list[Any], str]:
        if sql not in self.statement_cache:
            self._pool.parsed.append(sql)
            self.statement_cache.add(sql)
        self._pool.executed.append((sql, args))
        if self._pool.delay:
            await asyncio.sleep(self._pool.delay)
        if self._pool.execute_error is not None:
            raise self._pool.execute_error
        return self._pool.handler(sql, args)

    async def fetch(self, sql: str, *args: Any) -> list[Any]:
        rows, _ = await self._run(sql, args)
        return rows

    async def execute(self, sql: str, *args: Any) -> str:
        _, status = await self._run(sql, args)
        return status


class FakePool:
    """Just enough of `asyncpg.Pool` for the query layer: one connection."""

    def __init__(self) -> None:
        self.handler: Handler = _default_handler
        self.columns: list[str] = []
        self.prepare_calls: list[str] = []
        self.parsed: list[str] = []
        self.executed: list[tuple[str, tuple]] = []
        self.prepare_error: BaseException | None = None
        self.execute_error: BaseException | None = None
        self.close_error: BaseException | None = None
        self.prepare_delay = 0.0
        self.delay = 0.0
        self.closed = False
        self.acquired = 0
        self.connection = FakeConnection(self)

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        yield self.connection

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def pool() -> FakePool:
    return FakePool()


@pytest.fixture
def orm(pool: FakePool) -> Orm:
    return Orm(pool, OrmConfig(query_log=False))  # type: ignore[arg-type]
