from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db.base import MONEY, Base, IDMixin, TimestampMixin, UTCDateTime
from officehub.models.enums import ApprovalStatus, AssetCondition, StageStatus, enum_values


class ApprovalMixin:
    """Columns shared by records that pass the department-head then admin approval chain."""

    department_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    dept_head_status: Mapped[StageStatus] = mapped_column(
        Enum(StageStatus, name="stage_status", values_callable=enum_values),
        nullable=False,
        default=StageStatus.PENDING,
    )
    admin_status: Mapped[StageStatus] = mapped_column(
        Enum(StageStatus, name="stage_status", values_callable=enum_values),
        nullable=False,
        default=StageStatus.PENDING,
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status", values_callable=enum_values),
        nullable=False,
        default=ApprovalStatus.PENDING_DEPT_HEAD,
        index=True,
    )
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dept_head_approved_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    dept_head_approved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    admin_approved_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_approved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class PettyCashLedger(IDMixin, TimestampMixin, ApprovalMixin, Base):
    __tablename__ = "petty_cash_ledgers"
    __table_args__ = (
        UniqueConstraint("department_id", "year", "month", name="uq_petty_cash_ledgers_period"),
    )

    slip_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    starting_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_deposits: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_withdrawals: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    closing_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    custodian: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_signed: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    transactions: Mapped[List["PettyCashTransaction"]] = relationship(
        back_populates="ledger",
        cascade="all, delete-orphan",
        order_by="PettyCashTransaction.sequence",
    )

    __mapper_args__ = {"version_id_col": version}


class PettyCashTransaction(IDMixin, TimestampMixin, Base):
    __tablename__ = "petty_cash_transactions"
    __table_args__ = (UniqueConstraint("ledger_id", "sequence", name="uq_petty_cash_transactions_line"),)

    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("petty_cash_ledgers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    deposit: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    withdrawal: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    charged_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    received_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    received_by_staff_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id", ondelete="SET NULL"), nullable=True, index=True
    )
    attachment: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    ledger: Mapped["PettyCashLedger"] = relationship(back_populates="transactions")


class Asset(IDMixin, TimestampMixin, ApprovalMixin, Base):
    __tablename__ = "assets"

    asset_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    asset_condition: Mapped[AssetCondition] = mapped_column(
        Enum(AssetCondition, name="asset_condition", values_callable=enum_values),
        nullable=False,
        default=AssetCondition.GOOD,
    )
    warranty_expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expected_useful_life_years: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    responsible_person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    purchase_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    date_acquired: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    depreciation_rate_annual: Mapped[Decimal] = mapped_column(
        Numeric(6, 4), nullable=False, default=Decimal("0.05")
    )
    depreciation_expense_per_annum: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    depreciation_expense_per_month: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    depreciation_entries: Mapped[List["AssetDepreciation"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="AssetDepreciation.as_of",
    )

    __mapper_args__ = {"version_id_col": version}


class AssetDepreciation(IDMixin, TimestampMixin, Base):
    __tablename__ = "asset_depreciation"
    __table_args__ = (UniqueConstraint("asset_id", "as_of", name="uq_asset_depreciation_as_of"),)

    asset_id: Mapped[int] = mapped_column(
        ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    as_of: Mapped[date] = mapped_column(Date, nullable=False)
    years_elapsed: Mapped[float] = mapped_column(Float, nullable=False)
    accumulated_depreciation: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    book_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    recorded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    asset: Mapped["Asset"] = relationship(back_populates="depreciation_entries")
