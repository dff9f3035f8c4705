"""LeaveEvent repository: calendar listings per agency and per user."""
from __future__ import annotations

import datetime as _dt
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from careops.infra.database.models.leave_event import LeaveEvent
from careops.infra.database.repositories.base import BaseRepository


class LeaveEventRepository(BaseRepository[LeaveEvent]):
    model = LeaveEvent

    async def list_for_agency(
        self,
        agency_id: UUID,
        *,
        starts_before: Optional[_dt.datetime] = None,
        ends_after: Optional[_dt.datetime] = None,
    ) -> List[LeaveEvent]:
        """Leave in the agency ordered by start; the bounds keep events that touch the window."""
        stmt = (
            select(LeaveEvent)
            .where(LeaveEvent.agency_id == agency_id)
            .order_by(LeaveEvent.start_date, LeaveEvent.id)
        )
        if starts_before is not None:
            stmt = stmt.where(LeaveEvent.start_date <= starts_before)
        if ends_after is not None:
            stmt = stmt.where(LeaveEvent.end_date >= ends_after)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: UUID) -> List[LeaveEvent]:
        stmt = (
            select(LeaveEvent)
            .where(LeaveEvent.user_id == user_id)
            .order_by(LeaveEvent.start_date, LeaveEvent.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
