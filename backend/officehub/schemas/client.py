from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from officehub.models.enums import RecordStatus
from officehub.schemas.base import ORMModel


class ClientBase(ORMModel):
    company_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    service_type: Optional[str] = None
    category: Optional[str] = None
    progress_status: Optional[str] = None
    notes: Optional[str] = None


class ClientCreate(ClientBase):
    name: str = Field(..., min_length=1, max_length=255)


class ClientUpdate(ClientBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[RecordStatus] = None


class ClientRead(ClientBase):
    id: int
    client_id: str
    user_id: Optional[int] = None
    name: str
    status: RecordStatus
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ConsultationCreate(ORMModel):
    consultation_date: date
    subject: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None


class ConsultationRead(ConsultationCreate):
    id: int
    client_id: int
    consultant_id: Optional[int] = None
    created_at: datetime
