"""
Process-wide database wiring.

This module owns the query layer (`Orm`) and its asyncpg pool. FastAPI
initializes it on startup and closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging

from .config import Settings, load_settings
from .orm import Model, Orm

logger = logging.getLogger(__name__)

_orm: Orm | None = None


async def init_pool(settings: Settings | None = None) -> Orm:
    global _orm
    if _orm is not None:
        return _orm

    settings = settings or load_settings()
    connect_kwargs = {}
    if settings.database.ssl_mode:
        connect_kwargs["ssl"] = settings.database.ssl_mode
    _orm = await Orm.connect(settings.database.dsn, settings.orm, **connect_kwargs)
    return _orm


async def close_pool() -> None:
    """
    Release cached statements and the pool. Failures are raised after the
    module state is reset, so a later `init_pool()` starts clean.
    """
    global _orm
    if _orm is None:
        return None
    current, _orm = _orm, None
    await current.close()


def orm() -> Orm:
    if _orm is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _orm


def table(name: str) -> Model:
    return orm().table(name)
