from __future__ import annotations

from typing import Optional

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db.base import Base, IDMixin, TimestampMixin
from officehub.models.enums import PartnerType, RecordStatus, enum_values


class Partner(IDMixin, TimestampMixin, Base):
    __tablename__ = "partners"

    partner_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    partner_type: Mapped[PartnerType] = mapped_column(
        Enum(PartnerType, name="partner_type", values_callable=enum_values),
        nullable=False,
        default=PartnerType.AFFILIATE,
    )
    status: Mapped[RecordStatus] = mapped_column(
        Enum(RecordStatus, name="record_status", values_callable=enum_values),
        nullable=False,
        default=RecordStatus.ACTIVE,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped[Optional["User"]] = relationship(foreign_keys=[user_id])
