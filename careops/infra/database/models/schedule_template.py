"""ScheduleTemplate and TemplateVisit ORM models: reusable weekly visit patterns."""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careops.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class ScheduleTemplate(Base, TimestampMixin):
    """
    A client-scoped weekly pattern; not itself bookable.
    At most one template per client has is_active = true.
    """

    __tablename__ = "schedule_templates"
    __table_args__ = (
        Index("ix_schedule_templates_client_agency", "client_id", "agency_id"),
        Index(
            "ux_schedule_templates_one_active",
            "client_id",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    agency_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    visits: Mapped[List["TemplateVisit"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"ScheduleTemplate(id={self.id!r}, name={self.name!r}, is_active={self.is_active!r})"


class TemplateVisit(Base, TimestampMixin):
    """
    One day-of-week + time window + worker assignment inside a template.

    Fields may be incomplete (e.g. an unallocated worker); such visits are
    skipped when the template is materialized.
    """

    __tablename__ = "template_visits"

    id: Mapped[uuid.UUID] = _uuid_pk()
    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("schedule_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    start_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)

    worker_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    worker2_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    worker3_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    rate_sheet_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    client_visit_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Visit")
    end_status: Mapped[str] = mapped_column(String(32), nullable=False, default="SAME_DAY")

    template: Mapped[ScheduleTemplate] = relationship(back_populates="visits")
