# hospitalms/routers/doctors.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings
from hospitalms.db.session import get_session
from hospitalms.dependencies import get_current_user, get_settings, require_roles
from hospitalms.modules.users import service as users_svc
from hospitalms.modules.users.models import User
from hospitalms.modules.users.schemas import DoctorList, ScheduleResponse, WeeklySchedule

router = APIRouter(tags=["doctors"])


@router.get(
    "/doctors",
    response_model=DoctorList,
    summary="List active doctors (Bearer required, no role checks)",
)
async def doctors_index(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await users_svc.list_doctors(session)


@router.get(
    "/doctors/{doctor_id}/schedule",
    response_model=ScheduleResponse,
    summary="Weekly working hours of a doctor",
)
async def doctors_schedule(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    """
    All seven days are returned; days never configured show the default
    window as available.
    """
    return await users_svc.get_schedule(session, doctor_id, cfg)


@router.put(
    "/doctors/{doctor_id}/schedule",
    response_model=ScheduleResponse,
    summary="Replace working hours for the given days (doctor/admin only)",
)
async def doctors_update_schedule(
    doctor_id: UUID,
    payload: WeeklySchedule,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("doctor", "admin")),
    cfg: Settings = Depends(get_settings),
):
    """
    Days present in the body overwrite the stored entry; days left out keep
    their current value. A doctor may only edit their own hours.
    """
    return await users_svc.update_schedule(session, doctor_id, payload, current_user, cfg)
