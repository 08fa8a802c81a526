from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from officehub.models.enums import EmploymentType, RecordStatus
from officehub.schemas.base import ORMModel
from officehub.schemas.user import UserSummary


class StaffCreate(ORMModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: Optional[str] = Field(default=None, min_length=6)
    phone: Optional[str] = None
    department_id: Optional[int] = None
    position: Optional[str] = None
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    hire_date: Optional[date] = None
    base_salary: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    address: Optional[str] = None
    emergency_contact: Optional[str] = None


class StaffUpdate(ORMModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None
    position: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    hire_date: Optional[date] = None
    base_salary: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    status: Optional[RecordStatus] = None


class StaffRead(ORMModel):
    id: int
    staff_id: str
    user_id: int
    department_id: Optional[int] = None
    position: Optional[str] = None
    employment_type: EmploymentType
    hire_date: Optional[date] = None
    base_salary: Optional[Decimal] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    status: RecordStatus
    user: UserSummary
    created_at: datetime
    updated_at: datetime
