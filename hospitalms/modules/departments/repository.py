# hospitalms/modules/departments/repository.py
from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.modules.departments.models import Department
from hospitalms.modules.users.models import User


async def get_by_id(session: AsyncSession, department_id: UUID) -> Optional[Department]:
    return await session.get(Department, department_id)


async def get_by_name(session: AsyncSession, name: str) -> Optional[Department]:
    stmt = select(Department).where(Department.name_key == name.strip().lower())
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_all(session: AsyncSession) -> Sequence[Department]:
    rows = await session.execute(select(Department).order_by(Department.name))
    return rows.scalars().all()


async def create(session: AsyncSession, *, name: str, description: str = "") -> Department:
    dept = Department(name=name, name_key=name.lower(), description=description)
    session.add(dept)
    await session.flush()
    await session.refresh(dept)
    return dept


async def count_members(session: AsyncSession, department_id: UUID) -> int:
    stmt = select(func.count()).select_from(User).where(User.department_id == department_id)
    return (await session.execute(stmt)).scalar_one()


async def delete_by_id(session: AsyncSession, department_id: UUID) -> int:
    res = await session.execute(delete(Department).where(Department.id == department_id))
    return res.rowcount or 0  # type: ignore
