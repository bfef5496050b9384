# hospitalms/routers/users.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.db.session import get_session
from hospitalms.dependencies import require_roles
from hospitalms.modules.users import service as users_svc
from hospitalms.modules.users.models import User
from hospitalms.modules.users.schemas import (
    Role,
    UserCreateRequest,
    UserListParams,
    UserPage,
    UserPublic,
    UserUpdateRequest,
)

router = APIRouter(tags=["users"])


@router.get(
    "/users",
    response_model=UserPage,
    summary="List users (admin only)",
)
async def users_index(
    role: Optional[Role] = Query(None),
    q: Optional[str] = Query(None, description="Search on email/first_name/last_name"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    order_by: str = Query("created_at", alias="orderBy", pattern="^(created_at|last_name|email)$"),
    order_dir: str = Query("desc", alias="orderDir", pattern="^(asc|desc)$"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    params = UserListParams(
        role=role,
        q=q,
        is_active=is_active,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_dir=order_dir,
    )
    return await users_svc.list_users(session, params)


@router.post(
    "/users",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user with any role (admin only)",
    responses={409: {"description": "Email already registered"}},
)
async def users_create(
    payload: UserCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    return await users_svc.create_user(session, payload)


@router.get(
    "/users/{user_id}",
    response_model=UserPublic,
    summary="Get a user by id (admin only)",
)
async def users_show(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    return await users_svc.get_user(session, user_id)


@router.put(
    "/users/{user_id}",
    response_model=UserPublic,
    summary="Update a user (admin only)",
)
async def users_update(
    user_id: UUID,
    payload: UserUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    """
    Partial update. Switching a doctor to another role clears the
    doctor-only fields (specialization, license, department, working hours).
    """
    return await users_svc.update_user(session, user_id, payload)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user and their appointments (admin only)",
)
async def users_delete(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    await users_svc.delete_user(session, user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
