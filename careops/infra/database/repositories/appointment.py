"""Appointment repository: the authoritative store of concrete appointments."""
from __future__ import annotations

import datetime as _dt
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, text

from careops.infra.database.models.appointment import Appointment
from careops.infra.database.repositories.base import BaseRepository


class AppointmentRepository(BaseRepository[Appointment]):
    model = Appointment

    async def list_for_worker_on_date(
        self,
        worker_id: UUID,
        date: _dt.date,
        *,
        exclude_id: Optional[UUID] = None,
    ) -> List[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.worker_id == worker_id)
            .where(Appointment.date == date)
            .order_by(Appointment.start_time)
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _filters(
        *,
        agency_id: Optional[UUID] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        worker_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        date_from: Optional[_dt.date] = None,
        date_to: Optional[_dt.date] = None,
    ) -> List[Any]:
        conditions: List[Any] = []
        if agency_id is not None:
            conditions.append(Appointment.agency_id == agency_id)
        if status is not None:
            conditions.append(Appointment.status == status)
        if category is not None:
            conditions.append(Appointment.category == category)
        if worker_id is not None:
            conditions.append(Appointment.worker_id == worker_id)
        if client_id is not None:
            conditions.append(Appointment.client_id == client_id)
        if date_from is not None:
            conditions.append(Appointment.date >= date_from)
        if date_to is not None:
            conditions.append(Appointment.date <= date_to)
        return conditions

    async def list_filtered(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = 100,
        **filters: Any,
    ) -> Tuple[List[Appointment], int]:
        """Page of matching appointments (date, start_time order) plus the total match count.

        ``limit=None`` returns every match.
        """
        conditions = self._filters(**filters)
        stmt = (
            select(Appointment)
            .where(*conditions)
            .order_by(Appointment.date, Appointment.start_time, Appointment.id)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Appointment).where(*conditions)
        items = list((await self.session.execute(stmt)).scalars().all())
        total = (await self.session.execute(count_stmt)).scalar_one()
        return items, total

    async def lock_worker_day(self, worker_id: UUID, date: _dt.date) -> None:
        """Take a transaction-scoped advisory lock for (worker_id, date).

        Concurrent create/update requests for the same worker and day queue
        here, so the overlap read and the insert happen as one unit. The lock
        is released when the surrounding transaction commits or rolls back.
        """
        key = f"appointments:{worker_id}:{date.isoformat()}"
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
            {"key": key},
        )
