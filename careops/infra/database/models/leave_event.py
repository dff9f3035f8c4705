"""LeaveEvent ORM model: a span of absence on one user's calendar."""
from __future__ import annotations

import datetime as _dt
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from careops.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class LeaveEvent(Base, TimestampMixin):
    """
    Leave is shown alongside appointments but is not consulted by the
    overlap check; booking a worker who is on leave is still allowed.
    """

    __tablename__ = "leave_events"
    __table_args__ = (
        Index("ix_leave_events_agency_start", "agency_id", "start_date"),
        Index("ix_leave_events_user_start", "user_id", "start_date"),
        CheckConstraint("end_date >= start_date", name="ck_leave_events_span"),
        CheckConstraint("pay_rate IS NULL OR pay_rate >= 0", name="ck_leave_events_pay_rate"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    agency_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    start_date: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    event_type: Mapped[str] = mapped_column(String(32), nullable=False, default="OTHER")
    # ANNUAL_LEAVE | SICK_LEAVE | PUBLIC_HOLIDAY | ... | TOIL | OTHER
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pay_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return (
            f"LeaveEvent(id={self.id!r}, user_id={self.user_id!r}, "
            f"{self.event_type} {self.start_date!r}-{self.end_date!r})"
        )
