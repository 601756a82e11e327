"""
Settings read from environment variables.

Database:
- DATABASE_URL, or DB_HOST / DB_PORT / DB_USERNAME / DB_PASSWORD / DB_NAME / DB_SSLMODE

Query layer:
- ORM_MAX_OPEN_CONNS, ORM_MAX_IDLE_CONNS, ORM_CONN_MAX_LIFETIME (seconds),
  ORM_QUERY_LOG, ORM_QUERY_TIMEOUT (seconds, optional)

Logging:
- LOGGER_LEVEL, LOGGER_FILE
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from .orm import OrmConfig

DEFAULT_MAX_OPEN_CONNS = 20
DEFAULT_MAX_IDLE_CONNS = 5
DEFAULT_CONN_MAX_LIFETIME_S = 3600.0


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float | None) -> float | None:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name).lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseSettings:
    dsn: str
    ssl_mode: str | None = None


@dataclass(frozen=True)
class LoggerSettings:
    level: str = "INFO"
    file: str | None = None


@dataclass(frozen=True)
class Settings:
    database: DatabaseSettings
    orm: OrmConfig = field(default_factory=OrmConfig)
    logger: LoggerSettings = field(default_factory=LoggerSettings)


def split_sslmode(url: str) -> tuple[str, str | None]:
    """
    Strip `sslmode` from a DSN query string and return it separately.

    asyncpg takes it through the `ssl` argument instead.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url, None

    ssl_mode = None
    params = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "sslmode":
            ssl_mode = value or None
            continue
        params.append((key, value))
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment)), ssl_mode


def database_settings() -> DatabaseSettings:
    url = _env("DATABASE_URL")
    if url:
        dsn, ssl_mode = split_sslmode(url)
        return DatabaseSettings(dsn=dsn, ssl_mode=ssl_mode or _env("DB_SSLMODE") or None)

    host = _env("DB_HOST")
    name = _env("DB_NAME")
    if not host or not name:
        raise RuntimeError("DATABASE_URL is not set.")

    user = quote(_env("DB_USERNAME"), safe="")
    password = quote(_env("DB_PASSWORD"), safe="")
    credentials = f"{user}:{password}@" if password else (f"{user}@" if user else "")
    port = _env("DB_PORT", "5432") or "5432"
    return DatabaseSettings(
        dsn=f"postgresql://{credentials}{host}:{port}/{quote(name, safe='')}",
        ssl_mode=_env("DB_SSLMODE") or None,
    )


def orm_settings() -> OrmConfig:
    return OrmConfig(
        max_open_conns=_env_int("ORM_MAX_OPEN_CONNS", DEFAULT_MAX_OPEN_CONNS),
        max_idle_conns=_env_int("ORM_MAX_IDLE_CONNS", DEFAULT_MAX_IDLE_CONNS),
        conn_max_lifetime=_env_float("ORM_CONN_MAX_LIFETIME", DEFAULT_CONN_MAX_LIFETIME_S),
        query_log=_env_bool("ORM_QUERY_LOG", True),
        query_timeout=_env_float("ORM_QUERY_TIMEOUT", None),
    )


def logger_settings() -> LoggerSettings:
    return LoggerSettings(
        level=_env("LOGGER_LEVEL", "INFO").upper() or "INFO",
        file=_env("LOGGER_FILE") or None,
    )


def load_settings() -> Settings:
    return Settings(
        database=database_settings(),
        orm=orm_settings(),
        logger=logger_settings(),
    )
