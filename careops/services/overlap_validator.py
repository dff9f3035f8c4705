"""OverlapValidator: detect double-booking of a worker on one day."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from careops.core.exceptions import ConflictError
from careops.infra.database.repositories.appointment import AppointmentRepository
from careops.scheduling.overlap import first_overlap

if TYPE_CHECKING:
    from careops.infra.database.models.appointment import Appointment
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class OverlapValidator:
    """Checks a candidate window against every other appointment of the worker on that date.

    Comparison is half-open: an appointment ending at 10:00 does not collide
    with one starting at 10:00.
    """

    def __init__(
        self,
        session: Optional["AsyncSession"] = None,
        *,
        repo: Optional[AppointmentRepository] = None,
    ) -> None:
        self._repo = repo if repo is not None else AppointmentRepository(session)

    async def find_conflict(
        self,
        worker_id: UUID,
        date: _dt.date,
        start_time: str,
        end_time: str,
        *,
        exclude_id: Optional[UUID] = None,
    ) -> Optional["Appointment"]:
        """Return the earliest-starting conflicting appointment, or None."""
        existing = await self._repo.list_for_worker_on_date(
            worker_id, date, exclude_id=exclude_id
        )
        return first_overlap(start_time, end_time, existing)

    async def ensure_available(
        self,
        worker_id: UUID,
        date: _dt.date,
        start_time: str,
        end_time: str,
        *,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """Raise ConflictError when the window is already taken."""
        conflict = await self.find_conflict(
            worker_id, date, start_time, end_time, exclude_id=exclude_id
        )
        if conflict is None:
            return
        logger.info(
            "OverlapValidator: rejected %s-%s for worker %s on %s (conflicts with %s)",
            start_time, end_time, worker_id, date, conflict.id,
        )
        raise ConflictError(
            "Scheduling conflict detected",
            details={
                "worker_id": str(worker_id),
                "date": date.isoformat(),
                "conflicting_id": str(conflict.id),
                "conflicting_start_time": conflict.start_time,
                "conflicting_end_time": conflict.end_time,
            },
        )
