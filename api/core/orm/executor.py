"""
Statement execution and row scanning.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Iterable, Sequence
from typing import Any, TypeVar

from .errors import DeadlineExceededError, ExecutionError, ScanError
from .statements import DRIVER_ERRORS, PreparedStatement

logger = logging.getLogger(__name__)

T = TypeVar("T")

DECODE_ERRORS = (ValueError, TypeError, ArithmeticError)

Record = dict[str, Any]


def log_query(sql: str, args: Sequence[Any], started: float) -> None:
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info("query duration_ms=%.3f sql=%s args=%r", duration_ms, sql, list(args))


def scan_rows(records: Iterable[Any]) -> list[Record]:
    """
    Turn driver records into plain dicts, one per row.

    Values keep the types asyncpg decoded them to.
    """
    rows: list[Record] = []
    for record in records:
        try:
            rows.append(dict(record))
        except (TypeError, ValueError) as exc:
            raise ScanError(f"scan error: {exc}", operation="scan") from exc
    return rows


async def fetch_all(
    statement: PreparedStatement,
    args: Sequence[Any],
    *,
    operation: str = "query",
    query_log: bool = False,
) -> list[Record]:
    started = time.perf_counter()
    try:
        try:
            records = await statement.fetch(args)
        except DRIVER_ERRORS as exc:
            raise ExecutionError(f"query error: {exc}", operation=operation) from exc
        except DECODE_ERRORS as exc:
            # Raised by asyncpg codecs while decoding result values.
            raise ScanError(f"scan error: {exc}", operation=operation) from exc
        return scan_rows(records)
    finally:
        if query_log:
            log_query(statement.sql, args, started)


async def execute(
    statement: PreparedStatement,
    args: Sequence[Any],
    *,
    operation: str = "execute",
    query_log: bool = False,
) -> int:
    started = time.perf_counter()
    try:
        try:
            return await statement.execute(args)
        except DRIVER_ERRORS as exc:
            raise ExecutionError(f"{operation} error: {exc}", operation=operation) from exc
    finally:
        if query_log:
            log_query(statement.sql, args, started)


async def run_with_timeout(aw: Awaitable[T], timeout: float | None, *, operation: str) -> T:
    """
    Await `aw`, bounded by `timeout` seconds when one is set.

    Expiry raises `DeadlineExceededError`. Cancellation of the calling task
    propagates as `asyncio.CancelledError`.
    """
    if timeout is None:
        return await aw
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError as exc:
        raise DeadlineExceededError(
            f"deadline of {timeout}s exceeded",
            operation=operation,
        ) from exc
