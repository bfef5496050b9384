# hospitalms/routers/appointments.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings
from hospitalms.db.session import get_session
from hospitalms.dependencies import get_current_user, get_settings, require_roles
from hospitalms.modules.appointments import service as appt_svc
from hospitalms.modules.appointments.schemas import (
    AppointmentCreated,
    AppointmentCreateRequest,
    AppointmentDetail,
    AppointmentList,
    AvailableDoctorsResponse,
    AvailableSlotsResponse,
    MessageResponse,
    StatusUpdated,
    StatusUpdateRequest,
)
from hospitalms.modules.users.models import User

router = APIRouter(tags=["appointments"])

_BOOKING_ERRORS = {
    400: {"description": "Missing fields, bad format, time order, past date, doctor unavailable, outside working hours, bad department"},
    403: {"description": "Patients can only book for themselves"},
    404: {"description": "Patient or doctor not found"},
    409: {"description": "Patient already booked that day, or the slot overlaps another booking"},
}


@router.post(
    "/appointments",
    response_model=AppointmentCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    responses=_BOOKING_ERRORS,
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    appointment = await appt_svc.create_appointment(session, payload, current_user, cfg)
    return AppointmentCreated(message="Appointment created successfully", appointment=appointment)


@router.get(
    "/appointments/available-slots",
    response_model=AvailableSlotsResponse,
    summary="Free time slots for a doctor on a date",
)
async def appointments_available_slots(
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.available_slots(session, doctor_id, date, cfg)


@router.get(
    "/appointments/available-doctors",
    response_model=AvailableDoctorsResponse,
    summary="Doctors free at a given date and time",
)
async def appointments_available_doctors(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    time: Optional[str] = Query(None, description="HH:MM"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.available_doctors(session, date, time, cfg)


@router.get(
    "/appointments",
    response_model=AppointmentList,
    summary="All appointments (admin only)",
)
async def appointments_index(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.list_all(session, cfg)


@router.get(
    "/appointments/patient/{patient_id}",
    response_model=AppointmentList,
    summary="Appointments of a patient",
)
async def appointments_for_patient(
    patient_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.list_for_patient(session, patient_id, current_user, cfg)


@router.get(
    "/appointments/doctor/{doctor_id}",
    response_model=AppointmentList,
    summary="Appointments of a doctor (the doctor or admin)",
)
async def appointments_for_doctor(
    doctor_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("doctor", "admin")),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.list_for_doctor(session, doctor_id, current_user, cfg)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentDetail,
    summary="Get one appointment",
)
async def appointments_show(
    appointment_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    appointment = await appt_svc.get_appointment(session, appointment_id, current_user, cfg)
    return AppointmentDetail(appointment=appointment)


@router.put(
    "/appointments/{appointment_id}/status",
    response_model=StatusUpdated,
    summary="Change an appointment's status",
)
async def appointments_update_status(
    appointment_id: str,
    payload: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    appointment = await appt_svc.update_status(session, appointment_id, payload, current_user, cfg)
    return StatusUpdated(message="Appointment status updated successfully", appointment=appointment)


@router.delete(
    "/appointments/{appointment_id}",
    response_model=MessageResponse,
    summary="Delete an appointment (admin only)",
)
async def appointments_delete(
    appointment_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_roles("admin")),
):
    await appt_svc.delete_appointment(session, appointment_id)
    return MessageResponse(message="Appointment deleted successfully")


@router.get(
    "/my-appointments",
    response_model=AppointmentList,
    summary="Current patient's appointments",
)
async def my_appointments(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.list_mine(session, current_user, cfg)


@router.get(
    "/my-appointments-doctor",
    response_model=AppointmentList,
    summary="Current doctor's appointments",
)
async def my_appointments_doctor(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cfg: Settings = Depends(get_settings),
):
    return await appt_svc.list_mine_doctor(session, current_user, cfg)
