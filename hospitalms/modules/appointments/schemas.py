# hospitalms/modules/appointments/schemas.py
from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire format is camelCase; snake_case is accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentCreateRequest(CamelModel):
    """
    Payload to create an appointment.

    Fields are kept as raw strings: the booking service validates them in a
    fixed order so each failure gets its own error code.
    Either ``startTime``/``endTime`` or the legacy ``appointmentTime`` may be sent.
    """
    patient_id: Optional[str] = None
    doctor_id: Optional[str] = None
    appointment_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    appointment_time: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    department: Optional[str] = None


class AppointmentPublic(CamelModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    patient_name: str
    doctor_name: str
    appointment_date: date
    appointment_time: str
    start_time: str
    end_time: str
    appointment_date_time: datetime
    symptoms: str
    notes: str
    department: str
    department_id: Optional[UUID] = None
    status: str
    created_at: datetime
    updated_at: datetime


class AppointmentCreated(CamelModel):
    message: str
    appointment: AppointmentPublic


class AppointmentList(CamelModel):
    appointments: List[AppointmentPublic]


class AppointmentDetail(CamelModel):
    appointment: AppointmentPublic


class StatusUpdateRequest(CamelModel):
    status: Optional[str] = None
    notes: Optional[str] = None


class StatusUpdated(CamelModel):
    message: str
    appointment: AppointmentPublic


class MessageResponse(CamelModel):
    message: str


# --- Availability ---

class WorkingHoursPublic(CamelModel):
    start_time: str
    end_time: str


class SlotPublic(CamelModel):
    start_time: str
    end_time: str
    display: str


class AvailableSlotsResponse(CamelModel):
    doctor_id: UUID
    date: dt.date
    day: str
    available: bool
    working_hours: Optional[WorkingHoursPublic] = None
    time_slots: List[SlotPublic]
    message: Optional[str] = None


class AvailableDoctor(CamelModel):
    id: UUID
    name: str
    email: str
    specialization: str
    department: str
    department_id: Optional[UUID] = None
    phone: str


class AvailableDoctorsResponse(CamelModel):
    doctors: List[AvailableDoctor]
