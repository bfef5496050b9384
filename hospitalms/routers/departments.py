# hospitalms/routers/departments.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.db.session import get_session
from hospitalms.dependencies import get_current_user, require_roles
from hospitalms.modules.departments import service as dept_svc
from hospitalms.modules.departments.schemas import (
    DepartmentCreateRequest,
    DepartmentList,
    DepartmentPublic,
    DepartmentUpdateRequest,
)
from hospitalms.modules.users.models import User

router = APIRouter(tags=["departments"])


@router.get("/departments", response_model=DepartmentList, summary="List departments")
async def departments_index(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await dept_svc.list_departments(session)


@router.get(
    "/departments/{department_id}",
    response_model=DepartmentPublic,
    summary="Get a department",
)
async def departments_show(
    department_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await dept_svc.get_department(session, department_id)


@router.post(
    "/departments",
    response_model=DepartmentPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Create a department (admin only)",
    responses={409: {"description": "Name already taken"}},
)
async def departments_create(
    payload: DepartmentCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    return await dept_svc.create_department(session, payload)


@router.put(
    "/departments/{department_id}",
    response_model=DepartmentPublic,
    summary="Rename or describe a department (admin only)",
)
async def departments_update(
    department_id: UUID,
    payload: DepartmentUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    return await dept_svc.update_department(session, department_id, payload)


@router.delete(
    "/departments/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a department with no assigned users (admin only)",
)
async def departments_delete(
    department_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    await dept_svc.delete_department(session, department_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
