"""Appointment ORM model: a concrete, dated, timed booking of one worker for one client."""
from __future__ import annotations

import datetime as _dt
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from careops.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class Appointment(Base, TimestampMixin):
    """
    start_time / end_time are zero-padded "HH:MM" strings on ``date``; string
    order equals time order. For one (worker_id, date) no two rows overlap
    under [start, end) semantics, except rows bulk-inserted from a template.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_worker_date", "worker_id", "date"),
        Index("ix_appointments_client_date", "client_id", "date"),
        Index("ix_appointments_agency_id", "agency_id"),
        CheckConstraint("end_time > start_time", name="ck_appointments_window"),
        CheckConstraint(
            "charge_rate IS NULL OR charge_rate >= 0", name="ck_appointments_charge_rate"
        ),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    agency_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    worker_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    date: Mapped[_dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    # PENDING | CONFIRMED | COMPLETED | CANCELLED
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="APPOINTMENT")
    # APPOINTMENT | WEEKLY_CHECKUP | HOME_VISIT | OTHER

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    charge_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # References into external stores (rate sheets, client visit types)
    rate_sheet_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    client_visit_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    # Set on rows materialized from a template
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("schedule_templates.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"Appointment(id={self.id!r}, worker_id={self.worker_id!r}, "
            f"date={self.date!r}, {self.start_time}-{self.end_time})"
        )
