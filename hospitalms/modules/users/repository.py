# hospitalms/modules/users/repository.py
from __future__ import annotations

from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.modules.users.models import User, UserRole


class EmailAlreadyExistsError(Exception):
    """Raised when trying to insert a user with an email that already exists."""


async def get_by_id(session: AsyncSession, user_id: UUID) -> Optional[User]:
    return await session.get(User, user_id)


async def get_with_role(session: AsyncSession, user_id: UUID, role: UserRole) -> Optional[User]:
    """
    Return the user only if it carries the given role.
    """
    stmt = select(User).where(User.id == user_id, User.role == role.value)
    return (await session.execute(stmt)).unique().scalar_one_or_none()


async def get_by_email(session: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email.strip().lower())
    return (await session.execute(stmt)).unique().scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    role: UserRole | str = UserRole.PATIENT,
    phone: Optional[str] = None,
    **extra: Any,
) -> User:
    """
    Inserts a new user row and returns the persisted ORM instance.

    Expects an already hashed password. ``extra`` carries the doctor fields
    (specialization, license_number, department_id, schedule).
    """
    role_value = role.value if isinstance(role, UserRole) else str(role)
    user = User(
        email=email.strip().lower(),
        password_hash=password_hash,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone=phone,
        role=role_value,
        is_active=True,
        **extra,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise EmailAlreadyExistsError("Email already registered") from exc

    await session.refresh(user)
    return user


async def list_users(
    session: AsyncSession,
    *,
    role: Optional[str],
    q: Optional[str],
    is_active: Optional[bool],
    order_by: str,
    order_dir: str,
    limit: int,
    offset: int,
) -> tuple[Sequence[User], int]:
    conditions = []
    if role:
        conditions.append(User.role == role)
    if is_active is not None:
        conditions.append(User.is_active == is_active)
    if q:
        term = f"%{q.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(User.email).like(term),
                func.lower(User.first_name).like(term),
                func.lower(User.last_name).like(term),
            )
        )

    col_map = {
        "created_at": User.created_at,
        "last_name": User.last_name,
        "email": User.email,
    }
    col = col_map.get(order_by, User.created_at)
    ordering = asc(col) if order_dir == "asc" else desc(col)

    total_stmt = select(func.count()).select_from(User).where(*conditions)
    total = (await session.execute(total_stmt)).scalar_one()

    stmt = (
        select(User)
        .where(*conditions)
        .order_by(ordering, User.id)  # tie-breaker for stable paging
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).unique().scalars().all()
    return rows, total


async def list_doctors(session: AsyncSession) -> Sequence[User]:
    stmt = (
        select(User)
        .where(User.role == UserRole.DOCTOR.value, User.is_active.is_(True))
        .order_by(User.last_name, User.first_name, User.id)
    )
    return (await session.execute(stmt)).unique().scalars().all()


async def delete_by_id(session: AsyncSession, user_id: UUID) -> int:
    res = await session.execute(delete(User).where(User.id == user_id))
    return res.rowcount or 0  # type: ignore
