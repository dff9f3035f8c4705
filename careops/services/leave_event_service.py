"""LeaveEventService: record, list and remove leave on users' calendars."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional
from uuid import UUID

from careops.core.exceptions import NotFoundError, ValidationError
from careops.infra.database.repositories.leave_event import LeaveEventRepository
from careops.infra.database.repositories.user import UserRepository
from careops.scheduling.time_utils import coerce_datetime
from careops.scheduling.types import LeaveType, leave_color

if TYPE_CHECKING:
    from careops.infra.database.models.leave_event import LeaveEvent
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("user_id", "agency_id", "start_date", "end_date", "event_type")

UNKNOWN_NAME = "Unknown"


@dataclass(frozen=True)
class LeaveEventView:
    id: UUID
    agency_id: UUID
    user_id: UUID
    start_date: _dt.datetime
    end_date: _dt.datetime
    event_type: str
    notes: Optional[str]
    pay_rate: Optional[Decimal]
    color: str
    title: str
    user_name: str


def build_leave_view(event: "LeaveEvent", names: Mapping[UUID, str]) -> LeaveEventView:
    leave_type = LeaveType.parse(event.event_type) or LeaveType.OTHER
    return LeaveEventView(
        id=event.id,
        agency_id=event.agency_id,
        user_id=event.user_id,
        start_date=event.start_date,
        end_date=event.end_date,
        event_type=event.event_type,
        notes=event.notes,
        pay_rate=event.pay_rate,
        color=event.color or leave_color(leave_type),
        title=event.event_type.replace("_", " "),
        user_name=names.get(event.user_id) or UNKNOWN_NAME,
    )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise ValidationError(
            f"{field} must be a valid id",
            details={"field": field, "value": str(value)},
            cause=exc,
        ) from exc


def _coerce_pay_rate(value: Any) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    try:
        rate = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(
            "pay_rate must be a number",
            details={"field": "pay_rate", "value": str(value)},
            cause=exc,
        ) from exc
    if not rate.is_finite() or rate < 0:
        raise ValidationError(
            "pay_rate must be a non-negative number",
            details={"field": "pay_rate", "value": str(value)},
        )
    return rate


def _require_leave_type(value: Any) -> LeaveType:
    leave_type = LeaveType.parse(value)
    if leave_type is None:
        raise ValidationError(
            "Invalid leave type",
            details={
                "field": "event_type",
                "value": str(value),
                "valid_types": [t.value for t in LeaveType],
            },
        )
    return leave_type


def _window_end(value: Any) -> _dt.datetime:
    """Upper bound of a listing window; a bare date covers that whole day."""
    end = coerce_datetime(value, field="date_to")
    bare = isinstance(value, str) and len(value.strip()) == 10
    if bare or (isinstance(value, _dt.date) and not isinstance(value, _dt.datetime)):
        end += _dt.timedelta(days=1, microseconds=-1)
    return end


class LeaveEventService:
    """Leave is a calendar resource of its own; appointments are not checked against it."""

    def __init__(
        self,
        session: Optional["AsyncSession"] = None,
        *,
        repo: Optional[LeaveEventRepository] = None,
        users: Optional[UserRepository] = None,
    ) -> None:
        self._repo = repo if repo is not None else LeaveEventRepository(session)
        self._users = users if users is not None else UserRepository(session)

    async def create(self, data: Mapping[str, Any]) -> LeaveEventView:
        missing = [f for f in REQUIRED_FIELDS if _is_blank(data.get(f))]
        if missing:
            raise ValidationError(
                "Missing required fields",
                details={"missing": missing, "required": list(REQUIRED_FIELDS)},
            )

        start_date = coerce_datetime(data["start_date"], field="start_date")
        end_date = coerce_datetime(data["end_date"], field="end_date")
        if end_date < start_date:
            raise ValidationError(
                "End date must not be before start date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        leave_type = _require_leave_type(data["event_type"])

        event = await self._repo.create({
            "agency_id": _coerce_uuid(data["agency_id"], "agency_id"),
            "user_id": _coerce_uuid(data["user_id"], "user_id"),
            "start_date": start_date,
            "end_date": end_date,
            "event_type": leave_type.value,
            "notes": data.get("notes") or None,
            "pay_rate": _coerce_pay_rate(data.get("pay_rate")),
            "color": (data.get("color") or "").strip() or leave_color(leave_type),
        })
        logger.info(
            "LeaveEventService: created %s leave %s for user %s (%s to %s)",
            event.event_type, event.id, event.user_id, event.start_date, event.end_date,
        )
        return (await self._views([event]))[0]

    async def list_for_agency(
        self,
        agency_id: UUID,
        *,
        date_from: Optional[Any] = None,
        date_to: Optional[Any] = None,
    ) -> List[LeaveEventView]:
        """Agency leave ordered by start. With a window, events overlapping it are kept."""
        ends_after = None if _is_blank(date_from) else coerce_datetime(date_from, field="date_from")
        starts_before = None if _is_blank(date_to) else _window_end(date_to)
        events = await self._repo.list_for_agency(
            agency_id, starts_before=starts_before, ends_after=ends_after
        )
        return await self._views(events)

    async def list_for_user(self, user_id: UUID) -> List[LeaveEventView]:
        return await self._views(await self._repo.list_for_user(user_id))

    async def delete(self, event_id: UUID) -> None:
        if not await self._repo.delete(event_id):
            raise NotFoundError("Leave event not found", details={"id": str(event_id)})
        logger.info("LeaveEventService: deleted leave event %s", event_id)

    async def _views(self, events: Iterable["LeaveEvent"]) -> List[LeaveEventView]:
        events = list(events)
        names = await self._users.get_full_names({e.user_id for e in events})
        return [build_leave_view(e, names) for e in events]
