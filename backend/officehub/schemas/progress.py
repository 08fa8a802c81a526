from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from officehub.models.enums import ProgressStatus, ReportCategory, ReportStatus, TargetStatus
from officehub.schemas.base import ORMModel


class ProgressReportCreate(ORMModel):
    name: str = Field(..., min_length=1, max_length=255)
    report_date: Optional[date] = None
    category: ReportCategory
    status: ReportStatus = ReportStatus.PENDING
    amount: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    notes: Optional[str] = None


class ProgressReportUpdate(ORMModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    report_date: Optional[date] = None
    category: Optional[ReportCategory] = None
    status: Optional[ReportStatus] = None
    amount: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    notes: Optional[str] = None


class ProgressReportDecision(ORMModel):
    status: ReportStatus


class ProgressReportRead(ORMModel):
    id: int
    name: str
    report_date: date
    category: ReportCategory
    status: ReportStatus
    amount: Decimal
    notes: Optional[str] = None
    client_id: Optional[int] = None
    department_id: Optional[int] = None
    created_by: int
    created_at: datetime
    updated_at: datetime


class TargetCreate(ORMModel):
    user_id: int
    target_amount: Decimal = Field(..., gt=Decimal("0"))
    period_start: date
    period_end: Optional[date] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class TargetUpdate(ORMModel):
    target_amount: Optional[Decimal] = Field(default=None, gt=Decimal("0"))
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    category: Optional[str] = None
    status: Optional[TargetStatus] = None
    notes: Optional[str] = None


class TargetRead(ORMModel):
    id: int
    user_id: int
    target_amount: Decimal
    category: Optional[str] = None
    period_start: date
    period_end: Optional[date] = None
    status: TargetStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    achieved_amount: Decimal = Decimal("0.00")
    pending_amount: Decimal = Decimal("0.00")
    remaining: Decimal = Decimal("0.00")
    percent: float = 0.0
    created_at: datetime
    updated_at: datetime


class TargetProgressRead(ORMModel):
    id: int
    target_id: int
    user_id: int
    progress_report_id: Optional[int] = None
    amount: Decimal
    category: Optional[str] = None
    status: ProgressStatus
    transaction_date: date
    notes: Optional[str] = None
    created_at: datetime


class TargetProgressDecision(ORMModel):
    status: ProgressStatus
