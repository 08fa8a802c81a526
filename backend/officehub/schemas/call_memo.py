from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from officehub.schemas.base import ORMModel


class CallMemoCreate(ORMModel):
    client_id: Optional[int] = None
    client_name: str = Field(..., min_length=1, max_length=255)
    participants: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=255)
    call_date: date
    discussion: str = Field(..., min_length=1)
    service_needed: str = Field(..., min_length=1, max_length=255)
    service_other: Optional[str] = Field(default=None, max_length=255)
    department_needed: Optional[str] = Field(default=None, max_length=255)
    next_visitation_date: Optional[date] = None


class CallMemoUpdate(ORMModel):
    client_id: Optional[int] = None
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    participants: Optional[str] = Field(default=None, min_length=1)
    subject: Optional[str] = Field(default=None, min_length=1, max_length=255)
    call_date: Optional[date] = None
    discussion: Optional[str] = Field(default=None, min_length=1)
    service_needed: Optional[str] = Field(default=None, min_length=1, max_length=255)
    service_other: Optional[str] = Field(default=None, max_length=255)
    department_needed: Optional[str] = Field(default=None, max_length=255)
    next_visitation_date: Optional[date] = None


class CallMemoRead(ORMModel):
    id: int
    client_id: Optional[int] = None
    client_name: str
    participants: str
    subject: str
    call_date: date
    discussion: str
    service_needed: str
    service_other: Optional[str] = None
    department_needed: Optional[str] = None
    next_visitation_date: Optional[date] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
