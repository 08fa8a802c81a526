from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db.base import MONEY, Base, IDMixin, TimestampMixin
from officehub.models.enums import EmploymentType, RecordStatus, enum_values


class Staff(IDMixin, TimestampMixin, Base):
    __tablename__ = "staff"

    staff_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )
    department_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    position: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    employment_type: Mapped[EmploymentType] = mapped_column(
        Enum(EmploymentType, name="employment_type", values_callable=enum_values),
        nullable=False,
        default=EmploymentType.FULL_TIME,
    )
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    base_salary: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[RecordStatus] = mapped_column(
        Enum(RecordStatus, name="record_status", values_callable=enum_values),
        nullable=False,
        default=RecordStatus.ACTIVE,
    )

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    department: Mapped[Optional["Department"]] = relationship(foreign_keys=[department_id])
