# hospitalms/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    CheckConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hospitalms.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin
from hospitalms.modules.departments.models import Department
from hospitalms.modules.users.models import User


class ApptStatus(PyEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a doctor's time and count towards the patient's daily limit
ACTIVE_STATUSES = (ApptStatus.SCHEDULED.value, ApptStatus.CONFIRMED.value)
VALID_STATUSES = tuple(s.value for s in ApptStatus)

_ACTIVE_SQL = text("status IN ('scheduled', 'confirmed')")


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "appointments"

    patient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Single-time field kept for older clients; always equals start_time
    appointment_time: Mapped[str] = mapped_column(String(5), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    # NULL on rows written by older clients: treated as start + 30 minutes
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    appointment_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    symptoms: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApptStatus.SCHEDULED.value,
        server_default=ApptStatus.SCHEDULED.value,
    )

    patient: Mapped[Optional[User]] = relationship(
        "User",
        foreign_keys=[patient_id],
        lazy="joined",
    )
    doctor: Mapped[Optional[User]] = relationship(
        "User",
        foreign_keys=[doctor_id],
        lazy="joined",
    )
    department: Mapped[Optional[Department]] = relationship(
        "Department",
        foreign_keys=[department_id],
        lazy="joined",
    )

    __table_args__ = (
        CheckConstraint(
            "end_time IS NULL OR start_time < end_time", name="ck_appt_time_order"
        ),
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled')",
            name="ck_appt_status_valid",
        ),
        # Backstop for the booking checks: one active booking per doctor/day/start
        Index(
            "uq_appt_doctor_day_start_active",
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            postgresql_where=_ACTIVE_SQL,
            sqlite_where=_ACTIVE_SQL,
        ),
        Index("ix_appt_patient_date", "patient_id", "appointment_date"),
        Index("ix_appt_doctor_date", "doctor_id", "appointment_date"),
        Index("ix_appt_datetime", "appointment_datetime"),
    )

    @property
    def department_name(self) -> Optional[str]:
        return self.department.name if self.department else None
