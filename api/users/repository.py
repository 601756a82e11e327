"""
Users persistence through the query builder.
"""

from __future__ import annotations

from core import db
from core.orm import NotFoundError

USER_COLUMNS = ("id", "username", "email", "created_at", "updated_at")


def _public(row: dict) -> dict:
    return {column: row.get(column) for column in USER_COLUMNS}


async def create_user(*, username: str, email: str, password_hash: str) -> dict:
    row = await db.table("users").create(
        {
            "username": username,
            "email": email.strip().lower(),
            "password": password_hash,
        }
    )
    return _public(row)


async def get_user_by_id(user_id: int, *, timeout: float | None = None) -> dict | None:
    try:
        return await (
            db.table("users")
            .with_timeout(timeout)
            .select(*USER_COLUMNS)
            .where("id", "=", user_id)
            .first()
        )
    except NotFoundError:
        return None


async def email_exists(email: str) -> bool:
    rows = await db.table("users").select("id").where("email", "=", email.strip().lower()).limit(1).get()
    return bool(rows)
