# hospitalms/modules/users/service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings
from hospitalms.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hospitalms.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    is_refresh_token,
    verify_password,
)
from hospitalms.modules.appointments import repository as appt_repo
from hospitalms.modules.appointments.scheduling import WEEKDAYS, working_hours_on
from hospitalms.modules.departments import repository as dept_repo
from hospitalms.modules.users import repository as users_repo
from hospitalms.modules.users.models import User, UserRole
from hospitalms.modules.users.schemas import (
    DaySchedule,
    DoctorList,
    DoctorPublic,
    LoginRequest,
    RegisterRequest,
    Role,
    ScheduleResponse,
    TokenPair,
    UserCreateRequest,
    UserListParams,
    UserPage,
    UserPublic,
    UserUpdateRequest,
    WeeklySchedule,
)

logger = logging.getLogger(__name__)


class InvalidCredentials(Exception):
    pass


def to_public(user: User) -> UserPublic:
    return UserPublic.model_validate(
        {
            "id": user.id,
            "email": user.email,
            "role": Role(user.role),
            "first_name": user.first_name,
            "last_name": user.last_name,
            "name": user.name,
            "phone": user.phone,
            "is_active": user.is_active,
            "specialization": user.specialization,
            "license_number": user.license_number,
            "department_id": user.department_id,
            "department": user.department_name,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }
    )


def _to_doctor(user: User) -> DoctorPublic:
    return DoctorPublic(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        specialization=user.specialization,
        department_id=user.department_id,
        department=user.department_name,
    )


async def _get_user_or_404(session: AsyncSession, user_id: UUID) -> User:
    user = await users_repo.get_by_id(session, user_id)
    if not user:
        raise NotFoundError("User not found", code="user_not_found")
    return user


async def _check_department(session: AsyncSession, department_id: Optional[UUID]) -> None:
    if department_id is not None and not await dept_repo.get_by_id(session, department_id):
        raise ValidationError("Department not found", code="invalid_department")


# ==============
# Auth
# ==============

def _issue_tokens(user: User, cfg: Settings) -> TokenPair:
    access = create_access_token(
        subject=str(user.id), role=user.role, email=user.email, cfg=cfg
    )
    refresh = create_refresh_token(subject=str(user.id), cfg=cfg)
    return TokenPair(
        access_token=access,
        expires_in=cfg.ACCESS_EXPIRES_MIN * 60,
        refresh_token=refresh,
    )


async def register_user(session: AsyncSession, payload: RegisterRequest) -> UserPublic:
    """
    Self-service registration:
      1) Check email uniqueness.
      2) Hash password with bcrypt.
      3) Persist user as a patient.
    """
    if await users_repo.get_by_email(session, payload.email):
        raise ConflictError("Email already registered", code="email_already_exists")

    try:
        user = await users_repo.create_user(
            session,
            email=payload.email,
            password_hash=hash_password(payload.password.get_secret_value()),
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            role=UserRole.PATIENT,
        )
    except users_repo.EmailAlreadyExistsError as exc:
        raise ConflictError("Email already registered", code="email_already_exists") from exc

    logger.info("Registered patient id=%s", user.id)
    return to_public(user)


async def login_user(session: AsyncSession, payload: LoginRequest, cfg: Settings) -> TokenPair:
    user = await users_repo.get_by_email(session, payload.email)
    if not user or not verify_password(payload.password.get_secret_value(), user.password_hash):
        raise InvalidCredentials("invalid_credentials")
    if not user.is_active:
        raise InvalidCredentials("user_inactive")
    return _issue_tokens(user, cfg)


async def refresh_tokens(session: AsyncSession, refresh_token: str, cfg: Settings) -> TokenPair:
    try:
        payload = decode_token(refresh_token, cfg)
    except InvalidTokenError as exc:
        raise InvalidCredentials("invalid_token") from exc
    if not is_refresh_token(payload):
        raise InvalidCredentials("invalid_token_type")

    try:
        user = await users_repo.get_by_id(session, UUID(str(payload["sub"])))
    except ValueError as exc:
        raise InvalidCredentials("invalid_token") from exc
    if not user or not user.is_active:
        raise InvalidCredentials("user_not_found")

    access = create_access_token(
        subject=str(user.id), role=user.role, email=user.email, cfg=cfg
    )
    return TokenPair(
        access_token=access,
        expires_in=cfg.ACCESS_EXPIRES_MIN * 60,
        refresh_token=refresh_token,
    )


# ==============
# User management (admin)
# ==============

async def list_users(session: AsyncSession, params: UserListParams) -> UserPage:
    users, total = await users_repo.list_users(
        session,
        role=params.role.value if params.role else None,
        q=params.q,
        is_active=params.is_active,
        order_by=params.order_by,
        order_dir=params.order_dir,
        limit=params.limit,
        offset=params.offset,
    )
    return UserPage(
        items=[to_public(u) for u in users],
        total=total,
        limit=params.limit,
        offset=params.offset,
        has_next=params.offset + params.limit < total,
    )


async def get_user(session: AsyncSession, user_id: UUID) -> UserPublic:
    return to_public(await _get_user_or_404(session, user_id))


async def create_user(session: AsyncSession, payload: UserCreateRequest) -> UserPublic:
    if await users_repo.get_by_email(session, payload.email):
        raise ConflictError("Email already registered", code="email_already_exists")

    extra: Dict[str, Any] = {}
    if payload.role == Role.doctor:
        await _check_department(session, payload.department_id)
        extra = {
            "specialization": payload.specialization or "",
            "license_number": payload.license_number or "",
            "department_id": payload.department_id,
        }

    try:
        user = await users_repo.create_user(
            session,
            email=payload.email,
            password_hash=hash_password(payload.password.get_secret_value()),
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            role=payload.role.value,
            **extra,
        )
    except users_repo.EmailAlreadyExistsError as exc:
        raise ConflictError("Email already registered", code="email_already_exists") from exc

    logger.info("Created user id=%s role=%s", user.id, user.role)
    return to_public(user)


async def update_user(
    session: AsyncSession, user_id: UUID, payload: UserUpdateRequest
) -> UserPublic:
    user = await _get_user_or_404(session, user_id)
    data = payload.model_dump(exclude_unset=True)

    password = data.pop("password", None)
    if password is not None:
        user.password_hash = hash_password(password.get_secret_value())

    new_role = data.pop("role", None)
    if new_role is not None and Role(new_role).value != user.role:
        user.role = Role(new_role).value
        if user.role != UserRole.DOCTOR.value:
            # doctor-only fields do not survive a role change
            user.specialization = None
            user.license_number = None
            user.department_id = None
            user.schedule = None

    if user.role != UserRole.DOCTOR.value:
        for key in ("specialization", "license_number", "department_id"):
            data.pop(key, None)
    elif "department_id" in data:
        await _check_department(session, data["department_id"])

    for key, value in data.items():
        if key in {"first_name", "last_name", "is_active"} and value is None:
            continue
        setattr(user, key, value)

    await session.flush()
    await session.refresh(user)
    return to_public(user)


async def delete_user(session: AsyncSession, user_id: UUID, current_user: User) -> None:
    if user_id == current_user.id:
        raise ValidationError("Cannot delete your own account", code="self_delete")
    await _get_user_or_404(session, user_id)
    removed = await appt_repo.delete_for_user(session, user_id)
    await users_repo.delete_by_id(session, user_id)
    logger.info("Deleted user id=%s (and %d appointments)", user_id, removed)


# ==============
# Doctors directory & working hours
# ==============

async def list_doctors(session: AsyncSession) -> DoctorList:
    doctors = await users_repo.list_doctors(session)
    return DoctorList(doctors=[_to_doctor(d) for d in doctors])


async def _get_doctor_or_404(session: AsyncSession, doctor_id: UUID) -> User:
    doctor = await users_repo.get_with_role(session, doctor_id, UserRole.DOCTOR)
    if not doctor:
        raise NotFoundError("Doctor not found", code="doctor_not_found")
    return doctor


def _resolved_schedule(doctor: User, cfg: Settings) -> Dict[str, DaySchedule]:
    """All seven days, defaults filled in."""
    resolved: Dict[str, DaySchedule] = {}
    for day in WEEKDAYS:
        hours = working_hours_on(
            doctor.schedule, day, cfg.DEFAULT_WORK_START, cfg.DEFAULT_WORK_END
        )
        resolved[day] = DaySchedule(
            available=hours.available,
            start_time=hours.start_time,
            end_time=hours.end_time,
        )
    return resolved


async def get_schedule(session: AsyncSession, doctor_id: UUID, cfg: Settings) -> ScheduleResponse:
    doctor = await _get_doctor_or_404(session, doctor_id)
    return ScheduleResponse(doctor_id=doctor.id, schedule=_resolved_schedule(doctor, cfg))


async def update_schedule(
    session: AsyncSession,
    doctor_id: UUID,
    payload: WeeklySchedule,
    current_user: User,
    cfg: Settings,
) -> ScheduleResponse:
    if current_user.role == UserRole.DOCTOR.value and current_user.id != doctor_id:
        raise AuthorizationError(
            "Doctors can only change their own working hours", code="not_owner"
        )
    doctor = await _get_doctor_or_404(session, doctor_id)

    merged = dict(doctor.schedule or {})
    merged.update(payload.to_document())
    # assign a new dict so the JSON column is flagged dirty
    doctor.schedule = merged

    await session.flush()
    await session.refresh(doctor)
    logger.info("Working hours updated for doctor id=%s", doctor.id)
    return ScheduleResponse(doctor_id=doctor.id, schedule=_resolved_schedule(doctor, cfg))

