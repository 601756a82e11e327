"""
Query layer failures.

Every public operation either returns a value or raises one of these.
The underlying driver error, when there is one, is chained as `__cause__`.
"""

from __future__ import annotations


class OrmError(RuntimeError):
    """
    Base class for query layer errors.

    `operation` names the builder/pool call that failed (e.g. "get", "update").
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.operation = operation
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)


class InvalidOperatorError(OrmError, ValueError):
    def __init__(self, op: str, *, operation: str | None = None) -> None:
        self.op = op
        super().__init__(f"invalid operator {op!r}", operation=operation)


class InvalidArgumentError(OrmError, ValueError):
    pass


class NotFoundError(OrmError, LookupError):
    def __init__(self, message: str = "no rows found", *, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)


class PrepareError(OrmError):
    pass


class ExecutionError(OrmError):
    pass


class ScanError(OrmError):
    pass


class PoolClosedError(OrmError):
    def __init__(self, message: str = "pool is closed", *, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)


class DeadlineExceededError(OrmError, TimeoutError):
    pass


class CleanupError(OrmError):
    """
    One or more resources failed to release.

    All failures are collected in `errors`; release does not stop at the first one.
    """

    def __init__(self, errors: list[BaseException], *, operation: str | None = "cleanup") -> None:
        self.errors = list(errors)
        detail = "; ".join(str(err) for err in self.errors)
        super().__init__(f"cleanup errors: {detail}", operation=operation)
