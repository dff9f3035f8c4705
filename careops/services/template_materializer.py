"""TemplateMaterializer: expand a weekly template into concrete PENDING appointments."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from careops.core.exceptions import (
    InvalidTimeFormatError,
    InvalidVisitError,
    NotFoundError,
    NoValidVisitsError,
)
from careops.infra.database.repositories.appointment import AppointmentRepository
from careops.infra.database.repositories.schedule_template import ScheduleTemplateRepository
from careops.scheduling.time_utils import next_occurrence_of, normalize_time, to_minutes
from careops.scheduling.types import AppointmentCategory, AppointmentStatus, DayOfWeek

if TYPE_CHECKING:
    from careops.infra.database.models.schedule_template import ScheduleTemplate, TemplateVisit
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

MATERIALIZED_STATUS = AppointmentStatus.PENDING
MATERIALIZED_CATEGORY = AppointmentCategory.HOME_VISIT
MATERIALIZED_CHARGE_RATE = Decimal("0")


@dataclass(frozen=True)
class SkippedVisit:
    visit_id: Optional[UUID]
    reason: str
    code: str = InvalidVisitError.default_code


@dataclass
class MaterializationResult:
    template_id: UUID
    reference_date: _dt.date
    appointment_ids: List[UUID] = field(default_factory=list)
    skipped: List[SkippedVisit] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.appointment_ids)


def _usable_window(visit: "TemplateVisit") -> Tuple[str, str]:
    if not visit.start_time or not visit.end_time:
        raise InvalidVisitError("Visit is missing a start or end time")
    try:
        start_time = normalize_time(visit.start_time, field="start_time")
        end_time = normalize_time(visit.end_time, field="end_time")
    except InvalidTimeFormatError as exc:
        raise InvalidVisitError(
            f"Visit has a malformed time: {exc.details.get('value')!r}", cause=exc
        ) from exc
    if to_minutes(end_time) <= to_minutes(start_time):
        raise InvalidVisitError("Visit end time must be after start time")
    return start_time, end_time


class TemplateMaterializer:
    """Turns each usable visit of a template into one appointment on the next matching weekday.

    The batch is inserted all-or-nothing. Generated appointments are not
    checked for overlap with existing bookings and no worker-day lock is
    taken: template application trusts the agency's template.
    """

    def __init__(
        self,
        session: Optional["AsyncSession"] = None,
        *,
        templates: Optional[ScheduleTemplateRepository] = None,
        appointments: Optional[AppointmentRepository] = None,
        clock: Callable[[], _dt.date] = _dt.date.today,
    ) -> None:
        self._templates = templates if templates is not None else ScheduleTemplateRepository(session)
        self._appointments = (
            appointments if appointments is not None else AppointmentRepository(session)
        )
        self._clock = clock

    async def apply_template(
        self,
        template_id: UUID,
        *,
        reference_date: Optional[_dt.date] = None,
    ) -> MaterializationResult:
        """Materialize ``template_id`` relative to ``reference_date`` (default: today).

        Raises NotFoundError for an unknown template and NoValidVisitsError
        when no visit survives validation; nothing is inserted in either case.
        """
        template = await self._templates.get_with_visits(template_id)
        if template is None:
            raise NotFoundError("Template not found", details={"id": str(template_id)})

        anchor = reference_date or self._clock()
        result = MaterializationResult(template_id=template.id, reference_date=anchor)
        drafts: List[Dict[str, Any]] = []
        for visit in template.visits:
            try:
                drafts.append(self._draft(template, visit, anchor))
            except InvalidVisitError as exc:
                logger.warning(
                    "TemplateMaterializer: skipping visit %s of template %s: %s",
                    visit.id, template.id, exc.message,
                )
                result.skipped.append(SkippedVisit(visit_id=visit.id, reason=exc.message))

        if not drafts:
            raise NoValidVisitsError(
                "No valid visits found in template",
                details={
                    "template_id": str(template.id),
                    "skipped": [
                        {"visit_id": str(s.visit_id) if s.visit_id else None, "reason": s.reason}
                        for s in result.skipped
                    ],
                },
            )

        async with self._appointments.transaction():
            created = await self._appointments.bulk_create(drafts)
        result.appointment_ids = [a.id for a in created]

        logger.info(
            "TemplateMaterializer: applied template %s (%s) from %s: inserted=%d skipped=%d",
            template.id, template.name, anchor, result.inserted_count, len(result.skipped),
        )
        return result

    @staticmethod
    def _draft(
        template: "ScheduleTemplate",
        visit: "TemplateVisit",
        anchor: _dt.date,
    ) -> Dict[str, Any]:
        if not visit.day:
            raise InvalidVisitError("Visit has no day of week")
        day = DayOfWeek.parse(visit.day)
        if day is None:
            raise InvalidVisitError(f"Visit has an unknown day of week: {visit.day!r}")
        start_time, end_time = _usable_window(visit)
        if visit.worker_id is None:
            raise InvalidVisitError("Visit has no primary worker")

        return {
            "agency_id": template.agency_id,
            "client_id": template.client_id,
            "worker_id": visit.worker_id,
            "date": next_occurrence_of(day, anchor),
            "start_time": start_time,
            "end_time": end_time,
            "status": MATERIALIZED_STATUS.value,
            "category": MATERIALIZED_CATEGORY.value,
            "charge_rate": MATERIALIZED_CHARGE_RATE,
            "notes": f"Applied from template: {template.name}",
            "rate_sheet_id": visit.rate_sheet_id,
            "client_visit_type_id": visit.client_visit_type_id,
            "template_id": template.id,
        }
