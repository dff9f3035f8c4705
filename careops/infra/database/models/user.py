"""User ORM model: read-only projection of the agency identity store.

Clients and care workers both live here; the scheduling engine only needs
their ids (for referential integrity) and full names (for display titles).
"""
from __future__ import annotations

import uuid

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from careops.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class User(Base, TimestampMixin):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_agency_id", "agency_id"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    agency_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="CLIENT")
    # CLIENT | CARE_WORKER | OFFICE_STAFF | ADMIN

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, full_name={self.full_name!r}, role={self.role!r})"
