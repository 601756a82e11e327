"""
Pool wrapper: owns the asyncpg pool and the prepared statement cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import asyncpg

from .builder import Model
from .errors import CleanupError, PoolClosedError
from .statements import PreparedStatement, StatementCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrmConfig:
    max_open_conns: int = 20
    max_idle_conns: int = 5
    conn_max_lifetime: float = 3600.0
    query_log: bool = False
    # Default deadline in seconds for every terminal call; None means none.
    query_timeout: float | None = None

    def pool_kwargs(self) -> dict[str, Any]:
        """
        Map the limits onto `asyncpg.create_pool` arguments.
        """
        max_size = max(1, self.max_open_conns)
        return {
            "min_size": max(0, min(self.max_idle_conns, max_size)),
            "max_size": max_size,
            "max_inactive_connection_lifetime": float(self.conn_max_lifetime),
        }


class Orm:
    """
    Entry point of the query layer.

    Shared by every builder; `table()` hands out a fresh single-use `Model`.
    Open until `close()`, after which every operation raises `PoolClosedError`.
    """

    def __init__(self, pool: asyncpg.Pool, config: OrmConfig | None = None) -> None:
        self.pool = pool
        self.config = config or OrmConfig()
        self.statements = StatementCache(pool)
        self._closed = False

    @classmethod
    async def connect(cls, dsn: str, config: OrmConfig | None = None, **connect_kwargs: Any) -> Orm:
        """
        Open a pool for `dsn`, applying the connection limits once.

        Extra keyword arguments are passed to `asyncpg.create_pool`.
        """
        config = config or OrmConfig()
        pool = await asyncpg.create_pool(dsn=dsn, **config.pool_kwargs(), **connect_kwargs)
        logger.info(
            "pool_opened max_open=%s max_idle=%s max_lifetime_s=%s",
            config.max_open_conns,
            config.max_idle_conns,
            config.conn_max_lifetime,
        )
        return cls(pool, config)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise PoolClosedError(operation=operation)

    def table(self, name: str) -> Model:
        self._check_open("table")
        return Model(self, name)

    async def prepare(self, sql: str) -> PreparedStatement:
        self._check_open("prepare")
        return await self.statements.compile(sql)

    async def cleanup(self) -> None:
        """
        Release every cached prepared statement.

        Shutdown-time only: must not run while queries are in flight.
        """
        await self.statements.close()

    async def close(self) -> None:
        """
        Release cached statements, then the pool.

        Failures from both steps are collected into one `CleanupError`.
        Closing twice is a no-op.
        """
        if self._closed:
            return None
        self._closed = True

        errors: list[BaseException] = []
        try:
            await self.cleanup()
        except CleanupError as exc:
            errors.extend(exc.errors)

        try:
            await self.pool.close()
        except Exception as exc:
            logger.warning("pool_close_failed error=%s", exc)
            errors.append(exc)

        logger.info("pool_closed errors=%s", len(errors))
        if errors:
            raise CleanupError(errors, operation="close")
