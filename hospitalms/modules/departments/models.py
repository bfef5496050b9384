# hospitalms/modules/departments/models.py
from __future__ import annotations

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hospitalms.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Department(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # lower(name), keeps names unique case-insensitively
    name_key: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("name_key", name="uq_departments_name_key"),
    )
