from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from officehub.models.enums import ApprovalStatus, AssetCondition, StageStatus
from officehub.schemas.base import ORMModel
from officehub.schemas.notification import AttachmentDescriptor


class ApprovalFields(ORMModel):
    department_id: Optional[int] = None
    created_by: int
    dept_head_status: StageStatus
    admin_status: StageStatus
    approval_status: ApprovalStatus
    locked: bool
    dept_head_approved_by: Optional[int] = None
    dept_head_approved_at: Optional[datetime] = None
    admin_approved_by: Optional[int] = None
    admin_approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    version: int


class ApprovalDecision(ORMModel):
    approved: bool
    version: Optional[int] = None
    reason: Optional[str] = None


class PettyCashTransactionCreate(ORMModel):
    transaction_date: date
    description: str = Field(..., min_length=1, max_length=500)
    deposit: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    withdrawal: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    charged_to: Optional[str] = None
    received_by: Optional[str] = None
    received_by_staff_id: Optional[int] = None
    attachment: Optional[AttachmentDescriptor] = None


class PettyCashTransactionRead(ORMModel):
    id: int
    ledger_id: int
    sequence: int
    transaction_date: date
    description: str
    deposit: Decimal
    withdrawal: Decimal
    balance: Decimal
    charged_to: Optional[str] = None
    received_by: Optional[str] = None
    received_by_staff_id: Optional[int] = None
    attachment: Optional[AttachmentDescriptor] = None
    created_by: Optional[int] = None
    created_at: datetime


class PettyCashLedgerCreate(ORMModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    starting_balance: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    custodian: Optional[str] = None
    notes: Optional[str] = None
    department_id: Optional[int] = None


class PettyCashLedgerUpdate(ORMModel):
    starting_balance: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    custodian: Optional[str] = None
    notes: Optional[str] = None


class PettyCashLedgerRead(ApprovalFields):
    id: int
    slip_number: str
    year: int
    month: int
    starting_balance: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    closing_balance: Decimal
    custodian: Optional[str] = None
    notes: Optional[str] = None
    date_signed: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class PettyCashLedgerDetail(PettyCashLedgerRead):
    transactions: List[PettyCashTransactionRead] = Field(default_factory=list)


class AssetCreate(ORMModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    purchase_price: Decimal = Field(..., ge=Decimal("0"))
    date_acquired: date
    depreciation_rate_annual: Optional[Decimal] = Field(default=None, ge=Decimal("0"), le=Decimal("1"))
    location: Optional[str] = None
    serial_number: Optional[str] = None
    supplier: Optional[str] = None
    asset_condition: AssetCondition = AssetCondition.GOOD
    warranty_expiry_date: Optional[date] = None
    expected_useful_life_years: Optional[int] = Field(default=None, ge=1, le=100)
    responsible_person_id: Optional[int] = None
    attachment: Optional[AttachmentDescriptor] = None
    notes: Optional[str] = None
    department_id: Optional[int] = None


class AssetUpdate(ORMModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    date_acquired: Optional[date] = None
    depreciation_rate_annual: Optional[Decimal] = Field(default=None, ge=Decimal("0"), le=Decimal("1"))
    location: Optional[str] = None
    serial_number: Optional[str] = None
    supplier: Optional[str] = None
    asset_condition: Optional[AssetCondition] = None
    warranty_expiry_date: Optional[date] = None
    expected_useful_life_years: Optional[int] = Field(default=None, ge=1, le=100)
    responsible_person_id: Optional[int] = None
    attachment: Optional[AttachmentDescriptor] = None
    notes: Optional[str] = None


class AssetRead(ApprovalFields):
    id: int
    asset_id: str
    name: str
    category: str
    location: Optional[str] = None
    serial_number: Optional[str] = None
    supplier: Optional[str] = None
    asset_condition: AssetCondition
    warranty_expiry_date: Optional[date] = None
    expected_useful_life_years: Optional[int] = None
    responsible_person_id: Optional[int] = None
    attachment: Optional[AttachmentDescriptor] = None
    purchase_price: Decimal
    date_acquired: date
    depreciation_rate_annual: Decimal
    depreciation_expense_per_annum: Decimal
    depreciation_expense_per_month: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DepreciationRead(ORMModel):
    asset_id: int
    as_of: date
    years_elapsed: float
    annual_depreciation: Decimal
    accumulated_depreciation: Decimal
    book_value: Decimal


class DepreciationRecordCreate(ORMModel):
    as_of: Optional[date] = None


class DepreciationEntryRead(ORMModel):
    id: int
    asset_id: int
    as_of: date
    years_elapsed: float
    accumulated_depreciation: Decimal
    book_value: Decimal
    recorded_by: Optional[int] = None
    created_at: datetime


class MonthlyAssetSheet(ORMModel):
    year: int
    month: int
    month_name: str
    assets: List[AssetRead]
    total_amount: Decimal
