from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from officehub.models.enums import PartnerType, RecordStatus
from officehub.schemas.base import ORMModel


class PartnerCreate(ORMModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    partner_type: PartnerType = PartnerType.AFFILIATE
    notes: Optional[str] = None


class PartnerUpdate(ORMModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    partner_type: Optional[PartnerType] = None
    status: Optional[RecordStatus] = None
    notes: Optional[str] = None


class PartnerRead(ORMModel):
    id: int
    partner_id: str
    user_id: Optional[int] = None
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    partner_type: PartnerType
    status: RecordStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
