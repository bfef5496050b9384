# hospitalms/modules/departments/service.py
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.errors import ConflictError, NotFoundError, ValidationError
from hospitalms.modules.departments import repository as dept_repo
from hospitalms.modules.departments.models import Department
from hospitalms.modules.departments.schemas import (
    DepartmentCreateRequest,
    DepartmentList,
    DepartmentPublic,
    DepartmentUpdateRequest,
)

logger = logging.getLogger(__name__)


def _to_public(dept: Department) -> DepartmentPublic:
    return DepartmentPublic.model_validate(dept)


async def _get_or_404(session: AsyncSession, department_id: UUID) -> Department:
    dept = await dept_repo.get_by_id(session, department_id)
    if not dept:
        raise NotFoundError("Department not found", code="department_not_found")
    return dept


async def list_departments(session: AsyncSession) -> DepartmentList:
    rows = await dept_repo.list_all(session)
    return DepartmentList(departments=[_to_public(d) for d in rows])


async def get_department(session: AsyncSession, department_id: UUID) -> DepartmentPublic:
    return _to_public(await _get_or_404(session, department_id))


async def create_department(
    session: AsyncSession, payload: DepartmentCreateRequest
) -> DepartmentPublic:
    if await dept_repo.get_by_name(session, payload.name):
        raise ConflictError(
            "Department with this name already exists", code="department_exists"
        )
    dept = await dept_repo.create(
        session, name=payload.name, description=payload.description or ""
    )
    logger.info("Department created id=%s name=%s", dept.id, dept.name)
    return _to_public(dept)


async def update_department(
    session: AsyncSession, department_id: UUID, payload: DepartmentUpdateRequest
) -> DepartmentPublic:
    dept = await _get_or_404(session, department_id)

    if payload.name and payload.name.lower() != dept.name_key:
        clash = await dept_repo.get_by_name(session, payload.name)
        if clash and clash.id != dept.id:
            raise ConflictError(
                "Department with this name already exists", code="department_exists"
            )
        dept.name = payload.name
        dept.name_key = payload.name.lower()
    elif payload.name:
        # same name, different casing
        dept.name = payload.name

    if payload.description is not None:
        dept.description = payload.description

    await session.flush()
    await session.refresh(dept)
    return _to_public(dept)


async def delete_department(session: AsyncSession, department_id: UUID) -> None:
    await _get_or_404(session, department_id)
    if await dept_repo.count_members(session, department_id):
        raise ValidationError(
            "Cannot delete department. There are users assigned to this department.",
            code="department_in_use",
        )
    await dept_repo.delete_by_id(session, department_id)
    logger.info("Department deleted id=%s", department_id)
