"""
Users business logic.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _to_user_response(row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(row["id"]),
        username=str(row["username"]),
        email=str(row["email"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


async def create_user(payload: schemas.CreateUserRequest) -> schemas.UserResponse:
    if await repository.email_exists(payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered.",
        )

    row = await repository.create_user(
        username=payload.username,
        email=payload.email,
        password_hash=security.hash_password(payload.password),
    )
    logger.info("user_created user_id=%s", row["id"])
    return _to_user_response(row)


async def get_user_by_id(user_id: int) -> schemas.UserResponse:
    row = await repository.get_user_by_id(user_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found.",
        )
    return _to_user_response(row)
