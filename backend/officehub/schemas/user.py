from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from officehub.models.enums import Role
from officehub.schemas.base import ORMModel


def _check_email(value: str) -> str:
    if "@" not in value:
        raise ValueError("Invalid email address")
    local, _, domain = value.partition("@")
    if not local or not domain:
        raise ValueError("Invalid email address")
    return value.strip().lower()


class UserBase(ORMModel):
    email: str
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    role: Role = Role.STAFF
    department_id: Optional[int] = None
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _check_email(value)


class UserCreate(UserBase):
    password: Optional[str] = Field(default=None, min_length=6)


class UserUpdate(ORMModel):
    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    role: Optional[Role] = None
    department_id: Optional[int] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email")
    @classmethod
    def validate_optional_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _check_email(value)


class UserRead(ORMModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    role: Role
    department_id: Optional[int] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserSummary(ORMModel):
    id: int
    email: str
    full_name: str
    role: Role
    department_id: Optional[int] = None


class ResetPasswordPayload(ORMModel):
    password: str = Field(..., min_length=6)
