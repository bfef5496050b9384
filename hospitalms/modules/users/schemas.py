# hospitalms/modules/users/schemas.py
from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SecretStr,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from hospitalms.modules.appointments.scheduling import WEEKDAYS, to_minutes


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
PhoneStr = Annotated[str, StringConstraints(pattern=r"^\+?[1-9]\d{1,14}$")]  # E.164 simple
TimeStr = Annotated[str, StringConstraints(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]
ShortStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]

PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d\S]{8,64}$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_password(v: SecretStr) -> SecretStr:
    if not PASSWORD_RE.match(v.get_secret_value()):
        raise ValueError(
            "Password must be 8-64 chars and include at least one letter and one digit"
        )
    return v


# --- Register / Login / Refresh ---

class RegisterRequest(CamelModel):
    """Self-service sign-up. Always creates a patient."""
    email: EmailStr = Field(...)
    password: SecretStr = Field(..., description="8-64 chars, at least one letter and one digit")
    first_name: NameStr
    last_name: NameStr
    phone: Optional[PhoneStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: SecretStr) -> SecretStr:
        return _check_password(v)


class LoginRequest(CamelModel):
    email: EmailStr
    password: SecretStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenPair(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_token: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str


# --- Working hours ---

class DaySchedule(CamelModel):
    available: bool = True
    start_time: TimeStr = "09:00"
    end_time: TimeStr = "17:00"

    @model_validator(mode="after")
    def _end_after_start(self) -> "DaySchedule":
        if self.available and to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self


class WeeklySchedule(CamelModel):
    """Days left out fall back to the default working hours."""
    monday: Optional[DaySchedule] = None
    tuesday: Optional[DaySchedule] = None
    wednesday: Optional[DaySchedule] = None
    thursday: Optional[DaySchedule] = None
    friday: Optional[DaySchedule] = None
    saturday: Optional[DaySchedule] = None
    sunday: Optional[DaySchedule] = None

    def to_document(self) -> Dict[str, Any]:
        """Stored shape: {"monday": {"available": true, "startTime": "09:00", "endTime": "17:00"}}"""
        return {
            day: getattr(self, day).model_dump(by_alias=True)
            for day in WEEKDAYS
            if getattr(self, day) is not None
        }


class ScheduleResponse(CamelModel):
    doctor_id: UUID
    schedule: Dict[str, DaySchedule]


# --- Users ---

class UserPublic(CamelModel):
    id: UUID
    email: EmailStr
    role: Role
    first_name: str
    last_name: str
    name: str
    phone: Optional[str] = None
    is_active: bool
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    department_id: Optional[UUID] = None
    department: Optional[str] = None
    created_at: datetime
    updated_at: datetime


RegisterResponse = UserPublic
MeResponse = UserPublic


class UserCreateRequest(RegisterRequest):
    """Admin-side creation; any role."""
    role: Role = Role.patient
    specialization: Optional[ShortStr] = None
    license_number: Optional[ShortStr] = None
    department_id: Optional[UUID] = None


class UserUpdateRequest(CamelModel):
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None
    phone: Optional[PhoneStr] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    password: Optional[SecretStr] = None
    specialization: Optional[ShortStr] = None
    license_number: Optional[ShortStr] = None
    department_id: Optional[UUID] = None

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        return _check_password(v) if v is not None else v


class UserListParams(BaseModel):
    role: Optional[Role] = None
    q: Optional[str] = Field(
        default=None,
        description="Case-insensitive search over email, first_name, last_name",
    )
    is_active: Optional[bool] = None

    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    order_by: str = Field(default="created_at", pattern="^(created_at|last_name|email)$")
    order_dir: str = Field(default="desc", pattern="^(asc|desc)$")


class UserPage(CamelModel):
    items: List[UserPublic]
    total: int
    limit: int
    offset: int
    has_next: bool


class DoctorPublic(CamelModel):
    id: UUID
    name: str
    email: EmailStr
    phone: Optional[str] = None
    specialization: Optional[str] = None
    department_id: Optional[UUID] = None
    department: Optional[str] = None


class DoctorList(CamelModel):
    doctors: List[DoctorPublic]
