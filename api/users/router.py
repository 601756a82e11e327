"""
Users API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from . import schemas, service

router = APIRouter()


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(request: schemas.CreateUserRequest) -> schemas.RouteResponse:
    user = await service.create_user(request)
    return schemas.RouteResponse(status=True, message="User created successfully", data=user)


@router.get("/users/{user_id}")
async def get_user(user_id: int) -> schemas.RouteResponse:
    user = await service.get_user_by_id(user_id)
    return schemas.RouteResponse(status=True, message="User retrieved successfully", data=user)
