from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db.base import MONEY, Base, IDMixin, TimestampMixin
from officehub.models.enums import (
    ProgressStatus,
    ReportCategory,
    ReportStatus,
    TargetStatus,
    enum_values,
)


class ProgressReport(IDMixin, TimestampMixin, Base):
    __tablename__ = "progress_reports"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    category: Mapped[ReportCategory] = mapped_column(
        Enum(ReportCategory, name="report_category", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus, name="report_status", values_callable=enum_values),
        nullable=False,
        default=ReportStatus.PENDING,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    department_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    creator: Mapped["User"] = relationship(foreign_keys=[created_by])
    client: Mapped[Optional["Client"]] = relationship(foreign_keys=[client_id])
    target_progress: Mapped[Optional["TargetProgress"]] = relationship(
        back_populates="progress_report",
        cascade="all, delete-orphan",
        uselist=False,
    )


class Target(IDMixin, TimestampMixin, Base):
    __tablename__ = "targets"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[TargetStatus] = mapped_column(
        Enum(TargetStatus, name="target_status", values_callable=enum_values),
        nullable=False,
        default=TargetStatus.ACTIVE,
        index=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    progress_entries: Mapped[List["TargetProgress"]] = relationship(
        back_populates="target",
        cascade="all, delete-orphan",
        order_by="TargetProgress.id",
    )


class TargetProgress(IDMixin, TimestampMixin, Base):
    """Amount counted toward a target; at most one row per progress report."""

    __tablename__ = "target_progress"

    target_id: Mapped[int] = mapped_column(
        ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    progress_report_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("progress_reports.id", ondelete="CASCADE"), nullable=True, unique=True
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[ProgressStatus] = mapped_column(
        Enum(ProgressStatus, name="progress_status", values_callable=enum_values),
        nullable=False,
        default=ProgressStatus.PENDING,
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    target: Mapped["Target"] = relationship(back_populates="progress_entries")
    progress_report: Mapped[Optional["ProgressReport"]] = relationship(back_populates="target_progress")
