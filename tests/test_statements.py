"""Unit tests for the prepared statement cache."""

from __future__ import annotations

import asyncio

import asyncpg
import pytest

from core.orm import CleanupError, PoolClosedError, PrepareError
from core.orm.statements import StatementCache, rows_affected

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize(
    "status,expected",
    [("UPDATE 3", 3), ("DELETE 0", 0), ("INSERT 0 1", 1), ("SELECT 12", 12), ("", 0), (None, 0), ("CREATE TABLE", 0)],
)
def test_rows_affected(status: str | None, expected: int) -> None:
    assert rows_affected(status) == expected


async def test_compile_caches_by_sql_text(pool) -> None:
    pool.columns = ["id", "email"]
    cache = StatementCache(pool)

    first = await cache.compile("SELECT id, email FROM users")
    again = await cache.compile("SELECT id, email FROM users")
    other = await cache.compile("SELECT id FROM users")

    assert first is again
    assert first is not other
    assert first.columns == ("id", "email")
    assert len(cache) == 2
    assert "SELECT id FROM users" in cache
    assert pool.prepare_calls == ["SELECT id, email FROM users", "SELECT id FROM users"]


async def test_concurrent_compile_prepares_once(pool) -> None:
    pool.prepare_delay = 0.01
    cache = StatementCache(pool)
    sql = "SELECT users.* FROM users WHERE id = $1"

    handles = await asyncio.gather(*(cache.compile(sql) for _ in range(25)))

    assert len(handles) == 25
    assert all(handle is handles[0] for handle in handles)
    assert pool.prepare_calls.count(sql) == 1
    assert len(cache) == 1


async def test_prepare_failure_is_wrapped_and_not_cached(pool) -> None:
    cause = asyncpg.InterfaceError("cannot prepare")
    pool.prepare_error = cause
    cache = StatementCache(pool)

    with pytest.raises(PrepareError) as exc_info:
        await cache.compile("SELEC nonsense")

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.operation == "prepare"
    assert len(cache) == 0

    pool.prepare_error = None
    assert (await cache.compile("SELEC nonsense")).sql == "SELEC nonsense"


async def test_close_empties_cache_and_invalidates_handles(pool) -> None:
    cache = StatementCache(pool)
    handle = await cache.compile("SELECT 1")

    await cache.close()

    assert len(cache) == 0
    assert handle.closed
    with pytest.raises(PoolClosedError):
        await handle.fetch([])


class _BrokenStatement:
    def __init__(self, message: str) -> None:
        self.message = message

    def close(self) -> None:
        raise OSError(self.message)


async def test_close_aggregates_every_failure(pool) -> None:
    cache = StatementCache(pool)
    good = await cache.compile("SELECT 1")
    cache._statements["bad-1"] = _BrokenStatement("first")  # type: ignore[assignment]
    cache._statements["bad-2"] = _BrokenStatement("second")  # type: ignore[assignment]

    with pytest.raises(CleanupError) as exc_info:
        await cache.close()

    messages = [str(err) for err in exc_info.value.errors]
    assert messages == ["first", "second"]
    assert "first" in str(exc_info.value) and "second" in str(exc_info.value)
    assert good.closed
    assert len(cache) == 0
