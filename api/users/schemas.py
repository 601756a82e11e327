"""
Users API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., alias="userName", min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=130)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RouteResponse(BaseModel):
    status: bool
    message: str
    data: Any = None
