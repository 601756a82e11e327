"""
Query builder and executor over an asyncpg pool.

    orm = await Orm.connect(dsn, OrmConfig(max_open_conns=20))
    rows = await orm.table("users").where("id", "=", 1).or_where("id", "=", 2).get()
    await orm.close()
"""

from .builder import Model
from .clauses import VALID_OPERATORS
from .errors import (
    CleanupError,
    DeadlineExceededError,
    ExecutionError,
    InvalidArgumentError,
    InvalidOperatorError,
    NotFoundError,
    OrmError,
    PoolClosedError,
    PrepareError,
    ScanError,
)
from .orm import Orm, OrmConfig
from .sanitize import sanitize_identifier
from .statements import PreparedStatement, StatementCache

__all__ = [
    "VALID_OPERATORS",
    "CleanupError",
    "DeadlineExceededError",
    "ExecutionError",
    "InvalidArgumentError",
    "InvalidOperatorError",
    "Model",
    "NotFoundError",
    "Orm",
    "OrmConfig",
    "OrmError",
    "PoolClosedError",
    "PrepareError",
    "PreparedStatement",
    "ScanError",
    "StatementCache",
    "sanitize_identifier",
]
