# hospitalms/modules/departments/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, StringConstraints
from pydantic.alias_generators import to_camel

DeptNameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
DescriptionStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]


class DepartmentCreateRequest(BaseModel):
    name: DeptNameStr
    description: Optional[DescriptionStr] = None


class DepartmentUpdateRequest(BaseModel):
    name: Optional[DeptNameStr] = None
    description: Optional[DescriptionStr] = None


class DepartmentPublic(BaseModel):
    id: UUID
    name: str
    description: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class DepartmentList(BaseModel):
    departments: List[DepartmentPublic]
