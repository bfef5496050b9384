# hospitalms/modules/appointments/service.py
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hospitalms.core.config import Settings
from hospitalms.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hospitalms.core.ids import parse_id
from hospitalms.modules.appointments import repository as appt_repo
from hospitalms.modules.appointments import scheduling
from hospitalms.modules.appointments.models import (
    VALID_STATUSES,
    Appointment,
    ApptStatus,
)
from hospitalms.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentList,
    AppointmentPublic,
    AvailableDoctor,
    AvailableDoctorsResponse,
    AvailableSlotsResponse,
    SlotPublic,
    StatusUpdateRequest,
    WorkingHoursPublic,
)
from hospitalms.modules.departments import repository as dept_repo
from hospitalms.modules.departments.models import Department
from hospitalms.modules.users import repository as users_repo
from hospitalms.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def _parse_date(value: Optional[str]) -> date:
    try:
        return datetime.strptime((value or "").strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError(
            "Invalid appointment date, expected YYYY-MM-DD", code="invalid_date"
        ) from exc


def _require_id(value: Optional[str], what: str) -> UUID:
    parsed = parse_id(value)
    if parsed is None:
        raise ValidationError(f"Invalid {what} ID format", code="invalid_id")
    return parsed


def _interval(appt: Appointment, cfg: Settings) -> tuple[int, int]:
    return scheduling.effective_interval(appt.start_time, appt.end_time, cfg.SLOT_MINUTES)


def _end_label(appt: Appointment, cfg: Settings) -> str:
    return scheduling.from_minutes(_interval(appt, cfg)[1] % scheduling.MINUTES_PER_DAY)


def to_public(appt: Appointment, cfg: Settings) -> AppointmentPublic:
    return AppointmentPublic(
        id=appt.id,
        patient_id=appt.patient_id,
        doctor_id=appt.doctor_id,
        patient_name=appt.patient.name if appt.patient else "Unknown Patient",
        doctor_name=appt.doctor.name if appt.doctor else "Unknown Doctor",
        appointment_date=appt.appointment_date,
        appointment_time=appt.appointment_time,
        start_time=scheduling.format_time(appt.start_time),
        end_time=_end_label(appt, cfg),
        appointment_date_time=appt.appointment_datetime,
        symptoms=appt.symptoms or "",
        notes=appt.notes or "",
        department=appt.department_name or "Not assigned",
        department_id=appt.department_id,
        status=appt.status,
        created_at=appt.created_at,
        updated_at=appt.updated_at,
    )


def _conflict_info(appt: Appointment, cfg: Settings) -> Dict[str, Any]:
    return {
        "conflictingAppointment": {
            "id": str(appt.id),
            "appointmentDate": appt.appointment_date.isoformat(),
            "startTime": scheduling.format_time(appt.start_time),
            "endTime": _end_label(appt, cfg),
            "doctorId": str(appt.doctor_id),
            "doctorName": appt.doctor.name if appt.doctor else "Unknown Doctor",
        }
    }


def _to_list(rows: Sequence[Appointment], cfg: Settings) -> AppointmentList:
    return AppointmentList(appointments=[to_public(a, cfg) for a in rows])


# CREATE
async def create_appointment(
    session: AsyncSession,
    payload: AppointmentCreateRequest,
    current_user: User,
    cfg: Settings,
    now: Optional[datetime] = None,
) -> AppointmentPublic:
    """
    Admit a booking request. Checks run in a fixed order and the first
    failure is raised; the insert is the last step.

      1. required fields      5. not in the past         9. weekday available
      2. HH:MM format         6. patient / self-booking  10. inside working hours
      3. end after start      7. one active per day      11. no overlap with doctor
      4. id format            8. doctor exists           12. department resolution

    The read-then-insert is not atomic. A partial unique index on
    (doctor, date, start) for active rows catches identical concurrent
    bookings; overlapping ranges with different starts can still race.
    """
    slot = cfg.SLOT_MINUTES
    legacy = bool(payload.appointment_time) and not payload.start_time
    start, end = scheduling.normalize_time_range(
        payload.start_time, payload.end_time, payload.appointment_time, slot
    )

    # 1) Required fields
    if (
        not payload.patient_id
        or not payload.doctor_id
        or not payload.appointment_date
        or not start
        or (end is None and not legacy)
    ):
        raise ValidationError(
            "Patient ID, Doctor ID, appointment date, start time and end time are required",
            code="missing_fields",
        )

    # 2) Format
    if not scheduling.is_valid_time(start) or (end is not None and not scheduling.is_valid_time(end)):
        raise ValidationError(
            "Times must use the 24-hour HH:MM format", code="invalid_time_format"
        )

    # 3) Order (a legacy start too close to midnight has no end)
    if end is None or scheduling.to_minutes(end) <= scheduling.to_minutes(start):
        raise ValidationError("End time must be after start time", code="invalid_time_range")
    start_min, end_min = scheduling.to_minutes(start), scheduling.to_minutes(end)

    # 4) Ids
    patient_id = _require_id(payload.patient_id, "patient")
    doctor_id = _require_id(payload.doctor_id, "doctor")

    # 5) Date, not in the past
    day = _parse_date(payload.appointment_date)
    starts_at = datetime.combine(day, scheduling.to_time(start))
    if starts_at < (now or datetime.now()):
        raise ValidationError("Cannot book appointments in the past", code="past_appointment")

    # 6) Patient
    patient = await users_repo.get_with_role(session, patient_id, UserRole.PATIENT)
    if not patient:
        raise NotFoundError("Patient not found", code="patient_not_found")
    if current_user.role == UserRole.PATIENT.value and current_user.id != patient_id:
        raise AuthorizationError(
            "You can only create appointments for yourself", code="not_owner"
        )

    # 7) One active appointment per patient per day
    same_day = await appt_repo.active_for_patient_on(session, patient_id=patient_id, day=day)
    if same_day:
        logger.info("Booking rejected: patient %s already booked on %s", patient_id, day)
        raise ConflictError(
            "Patient already has an appointment on this date",
            code="patient_daily_limit",
            extra=_conflict_info(same_day, cfg),
        )

    # 8) Doctor
    doctor = await users_repo.get_with_role(session, doctor_id, UserRole.DOCTOR)
    if not doctor:
        raise NotFoundError("Doctor not found", code="doctor_not_found")

    # 9-10) Working hours
    hours = scheduling.working_hours_for(
        doctor.schedule, day, cfg.DEFAULT_WORK_START, cfg.DEFAULT_WORK_END
    )
    weekday = scheduling.weekday_name(day)
    if not hours.available:
        raise ValidationError(
            f"Doctor is not available on {weekday.capitalize()}",
            code="doctor_unavailable",
        )
    if not hours.contains(start_min, end_min):
        raise ValidationError(
            f"Requested time is outside the doctor's working hours "
            f"({hours.start_time}-{hours.end_time})",
            code="outside_working_hours",
            extra={"workingHours": {"startTime": hours.start_time, "endTime": hours.end_time}},
        )

    # 11) Overlap with the doctor's active bookings that day
    booked = await appt_repo.active_for_doctor_on(session, doctor_id=doctor_id, day=day)
    clash = scheduling.find_conflict(start_min, end_min, booked, lambda a: _interval(a, cfg))
    if clash:
        logger.info(
            "Booking rejected: doctor %s busy on %s %s-%s", doctor_id, day, start, end
        )
        raise ConflictError(
            "Doctor already has an appointment at this time",
            code="slot_conflict",
            extra=_conflict_info(clash, cfg),
        )

    # 12) Department: explicit id wins over the doctor's own
    department: Optional[Department] = None
    if payload.department:
        dept_id = parse_id(payload.department)
        if dept_id is None:
            raise ValidationError("Invalid department ID format", code="invalid_department")
        department = await dept_repo.get_by_id(session, dept_id)
        if not department:
            raise ValidationError("Department not found", code="invalid_department")
    elif doctor.department_id:
        department = doctor.department

    appt = Appointment(
        patient=patient,
        doctor=doctor,
        department=department,
        appointment_date=day,
        appointment_time=start,
        start_time=scheduling.to_time(start),
        end_time=scheduling.to_time(end),
        appointment_datetime=starts_at,
        symptoms=(payload.symptoms or "").strip(),
        notes=(payload.notes or "").strip(),
        status=ApptStatus.SCHEDULED.value,
    )
    try:
        appt = await appt_repo.add(session, appt)
    except IntegrityError as exc:
        raise ConflictError(
            "Doctor already has an appointment at this time", code="slot_conflict"
        ) from exc

    logger.info(
        "Appointment %s booked: patient=%s doctor=%s %s %s-%s",
        appt.id, patient_id, doctor_id, day, start, end,
    )
    return to_public(appt, cfg)


# AVAILABILITY
async def available_slots(
    session: AsyncSession,
    doctor_id: Optional[str],
    date_value: Optional[str],
    cfg: Settings,
) -> AvailableSlotsResponse:
    """
    Free fixed-length slots for a doctor on a date. An unavailable weekday
    yields an empty list with ``available=False``, not an error.
    """
    if not doctor_id or not date_value:
        raise ValidationError("doctorId and date are required", code="missing_fields")
    did = _require_id(doctor_id, "doctor")
    day = _parse_date(date_value)

    doctor = await users_repo.get_with_role(session, did, UserRole.DOCTOR)
    if not doctor:
        raise NotFoundError("Doctor not found", code="doctor_not_found")

    weekday = scheduling.weekday_name(day)
    hours = scheduling.working_hours_for(
        doctor.schedule, day, cfg.DEFAULT_WORK_START, cfg.DEFAULT_WORK_END
    )
    if not hours.available:
        return AvailableSlotsResponse(
            doctor_id=did,
            date=day,
            day=weekday,
            available=False,
            working_hours=None,
            time_slots=[],
            message=f"Doctor is not available on {weekday.capitalize()}",
        )

    booked = await appt_repo.active_for_doctor_on(session, doctor_id=did, day=day)
    busy = [_interval(a, cfg) for a in booked]
    slots = scheduling.free_slots(hours, busy, cfg.SLOT_MINUTES)
    return AvailableSlotsResponse(
        doctor_id=did,
        date=day,
        day=weekday,
        available=True,
        working_hours=WorkingHoursPublic(start_time=hours.start_time, end_time=hours.end_time),
        time_slots=[
            SlotPublic(start_time=s.start_time, end_time=s.end_time, display=s.display)
            for s in slots
        ],
    )


async def available_doctors(
    session: AsyncSession,
    date_value: Optional[str],
    time_value: Optional[str],
    cfg: Settings,
) -> AvailableDoctorsResponse:
    """
    Doctors free for a slot starting at ``time`` on ``date``: inside their
    working hours and not overlapping an active booking. Without both
    parameters every active doctor is listed.
    """
    doctors: List[User] = list(await users_repo.list_doctors(session))

    if date_value and time_value:
        day = _parse_date(date_value)
        if not scheduling.is_valid_time(time_value):
            raise ValidationError(
                "Times must use the 24-hour HH:MM format", code="invalid_time_format"
            )
        start_min = scheduling.to_minutes(time_value)
        end_min = start_min + cfg.SLOT_MINUTES

        booked = await appt_repo.active_for_doctors_on(
            session, doctor_ids=[d.id for d in doctors], day=day
        )
        by_doctor: Dict[UUID, List[Appointment]] = defaultdict(list)
        for appt in booked:
            by_doctor[appt.doctor_id].append(appt)

        free: List[User] = []
        for doctor in doctors:
            hours = scheduling.working_hours_for(
                doctor.schedule, day, cfg.DEFAULT_WORK_START, cfg.DEFAULT_WORK_END
            )
            if not hours.contains(start_min, end_min):
                continue
            if scheduling.find_conflict(
                start_min, end_min, by_doctor[doctor.id], lambda a: _interval(a, cfg)
            ):
                continue
            free.append(doctor)
        doctors = free

    return AvailableDoctorsResponse(
        doctors=[
            AvailableDoctor(
                id=d.id,
                name=d.name,
                email=d.email,
                specialization=d.specialization or "",
                department=d.department_name or "Not assigned",
                department_id=d.department_id,
                phone=d.phone or "",
            )
            for d in doctors
        ]
    )


# STATUS
async def update_status(
    session: AsyncSession,
    appointment_id: str,
    payload: StatusUpdateRequest,
    current_user: User,
    cfg: Settings,
) -> AppointmentPublic:
    """
    Set any of the four statuses; no transition graph is enforced.
    Patients and doctors may only touch their own appointments.
    """
    appt_id = _require_id(appointment_id, "appointment")
    status_value = (payload.status or "").strip().lower()
    if status_value not in VALID_STATUSES:
        raise ValidationError(
            "Valid status is required (scheduled, confirmed, completed, cancelled)",
            code="invalid_status",
        )

    appt = await _get_or_404(session, appt_id)
    _check_access(appt, current_user)

    previous = appt.status
    appt.status = status_value
    if payload.notes:
        appt.notes = payload.notes.strip()

    try:
        await session.flush()
    except IntegrityError as exc:
        # reactivating onto a start time another active booking now holds
        raise ConflictError(
            "Doctor already has an appointment at this time", code="slot_conflict"
        ) from exc
    await session.refresh(appt)

    logger.info("Appointment %s status %s -> %s", appt.id, previous, status_value)
    return to_public(appt, cfg)


# READS
async def _get_or_404(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appt = await appt_repo.get_by_id(session, appointment_id)
    if not appt:
        raise NotFoundError("Appointment not found", code="appointment_not_found")
    return appt


def _check_access(appt: Appointment, current_user: User) -> None:
    if current_user.role == UserRole.PATIENT.value and appt.patient_id != current_user.id:
        raise AuthorizationError("You do not have access to this appointment", code="not_owner")
    if current_user.role == UserRole.DOCTOR.value and appt.doctor_id != current_user.id:
        raise AuthorizationError("You do not have access to this appointment", code="not_owner")


async def get_appointment(
    session: AsyncSession, appointment_id: str, current_user: User, cfg: Settings
) -> AppointmentPublic:
    appt = await _get_or_404(session, _require_id(appointment_id, "appointment"))
    _check_access(appt, current_user)
    return to_public(appt, cfg)


async def list_all(session: AsyncSession, cfg: Settings) -> AppointmentList:
    return _to_list(await appt_repo.list_appointments(session), cfg)


async def list_for_patient(
    session: AsyncSession, patient_id: str, current_user: User, cfg: Settings
) -> AppointmentList:
    pid = _require_id(patient_id, "patient")
    if current_user.role == UserRole.PATIENT.value and current_user.id != pid:
        raise AuthorizationError(
            "Patients can only view their own appointments", code="not_owner"
        )
    return _to_list(await appt_repo.list_appointments(session, patient_id=pid), cfg)


async def list_for_doctor(
    session: AsyncSession, doctor_id: str, current_user: User, cfg: Settings
) -> AppointmentList:
    did = _require_id(doctor_id, "doctor")
    if current_user.role == UserRole.DOCTOR.value and current_user.id != did:
        raise AuthorizationError(
            "cannot_view_other_doctor_schedule", code="not_owner"
        )
    return _to_list(await appt_repo.list_appointments(session, doctor_id=did), cfg)


async def list_mine(session: AsyncSession, current_user: User, cfg: Settings) -> AppointmentList:
    if current_user.role != UserRole.PATIENT.value:
        raise AuthorizationError(
            "Access denied. Only patients can view their appointments.", code="forbidden_role"
        )
    rows = await appt_repo.list_appointments(session, patient_id=current_user.id)
    return _to_list(rows, cfg)


async def list_mine_doctor(
    session: AsyncSession, current_user: User, cfg: Settings
) -> AppointmentList:
    if current_user.role != UserRole.DOCTOR.value:
        raise AuthorizationError(
            "Access denied. Only doctors can view their appointments.", code="forbidden_role"
        )
    rows = await appt_repo.list_appointments(session, doctor_id=current_user.id)
    return _to_list(rows, cfg)


# DELETE
async def delete_appointment(session: AsyncSession, appointment_id: str) -> None:
    appt_id = _require_id(appointment_id, "appointment")
    await _get_or_404(session, appt_id)
    await appt_repo.delete_by_id(session, appt_id)
    logger.info("Appointment %s deleted", appt_id)
