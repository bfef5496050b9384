# hospitalms/modules/users/models.py
from __future__ import annotations

import uuid
from enum import Enum as PyEnum
from typing import Any, Optional, TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hospitalms.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin

if TYPE_CHECKING:
    from hospitalms.modules.departments.models import Department


class UserRole(PyEnum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class User(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserRole.PATIENT.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="1", default=True
    )

    # Doctor-only fields
    specialization: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Weekly working hours: {"monday": {"available": true, "startTime": "09:00", "endTime": "17:00"}, ...}
    schedule: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    department: Mapped[Optional["Department"]] = relationship(
        "Department",
        foreign_keys=[department_id],
        lazy="joined",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("email = lower(email)", name="ck_users_email_lowercase"),
        CheckConstraint(
            "role IN ('patient', 'doctor', 'admin')", name="ck_users_role_valid"
        ),
        Index("ix_users_role", "role"),
        Index("ix_users_department", "department_id"),
    )

    @property
    def role_enum(self) -> UserRole:
        """Get role as UserRole enum instance."""
        return UserRole(self.role)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def department_name(self) -> Optional[str]:
        return self.department.name if self.department else None
