from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officehub.db.base import Base, IDMixin, TimestampMixin


class CallMemo(IDMixin, TimestampMixin, Base):
    __tablename__ = "call_memos"

    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    participants: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    call_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    discussion: Mapped[str] = mapped_column(Text, nullable=False)
    service_needed: Mapped[str] = mapped_column(String(255), nullable=False)
    service_other: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    department_needed: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    next_visitation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    client: Mapped[Optional["Client"]] = relationship(foreign_keys=[client_id])
    creator: Mapped[Optional["User"]] = relationship(foreign_keys=[created_by])

    @property
    def created_by_name(self) -> Optional[str]:
        return self.creator.full_name if self.creator else None
