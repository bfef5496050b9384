# hospitalms/modules/appointments/repository.py
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.modules.appointments.models import ACTIVE_STATUSES, Appointment


async def get_by_id(session: AsyncSession, appointment_id: UUID) -> Optional[Appointment]:
    return await session.get(Appointment, appointment_id)


async def list_appointments(
    session: AsyncSession,
    *,
    patient_id: Optional[UUID] = None,
    doctor_id: Optional[UUID] = None,
) -> Sequence[Appointment]:
    """
    Appointments in chronological order, optionally filtered by patient/doctor.
    """
    stmt = select(Appointment)
    if patient_id is not None:
        stmt = stmt.where(Appointment.patient_id == patient_id)
    if doctor_id is not None:
        stmt = stmt.where(Appointment.doctor_id == doctor_id)
    stmt = stmt.order_by(Appointment.appointment_datetime, Appointment.created_at)
    rows = await session.execute(stmt)
    return rows.unique().scalars().all()


async def active_for_doctor_on(
    session: AsyncSession, *, doctor_id: UUID, day: date
) -> Sequence[Appointment]:
    stmt = (
        select(Appointment)
        .where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Appointment.start_time)
    )
    rows = await session.execute(stmt)
    return rows.unique().scalars().all()


async def active_for_doctors_on(
    session: AsyncSession, *, doctor_ids: Iterable[UUID], day: date
) -> Sequence[Appointment]:
    ids = list(doctor_ids)
    if not ids:
        return []
    stmt = select(Appointment).where(
        Appointment.doctor_id.in_(ids),
        Appointment.appointment_date == day,
        Appointment.status.in_(ACTIVE_STATUSES),
    )
    rows = await session.execute(stmt)
    return rows.unique().scalars().all()


async def active_for_patient_on(
    session: AsyncSession, *, patient_id: UUID, day: date
) -> Optional[Appointment]:
    stmt = (
        select(Appointment)
        .where(
            Appointment.patient_id == patient_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(ACTIVE_STATUSES),
        )
        .limit(1)
    )
    rows = await session.execute(stmt)
    return rows.unique().scalars().first()


async def add(session: AsyncSession, appt: Appointment) -> Appointment:
    session.add(appt)
    await session.flush()
    await session.refresh(appt)
    return appt


async def delete_by_id(session: AsyncSession, appointment_id: UUID) -> int:
    res = await session.execute(delete(Appointment).where(Appointment.id == appointment_id))
    return res.rowcount or 0  # type: ignore


async def delete_for_user(session: AsyncSession, user_id: UUID) -> int:
    res = await session.execute(
        delete(Appointment).where(
            (Appointment.patient_id == user_id) | (Appointment.doctor_id == user_id)
        )
    )
    return res.rowcount or 0  # type: ignore
