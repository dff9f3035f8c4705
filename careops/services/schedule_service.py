"""ScheduleService: validated create / update / delete / list of concrete appointments."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from careops.config.scheduling import SchedulingConfig, load_scheduling_config
from careops.core.exceptions import NotFoundError, ValidationError
from careops.infra.database.repositories.appointment import AppointmentRepository
from careops.infra.database.repositories.user import UserRepository
from careops.scheduling.time_utils import coerce_date, combine, normalize_time
from careops.scheduling.types import (
    DEFAULT_CATEGORY,
    UNRECOGNIZED,
    AppointmentCategory,
    AppointmentStatus,
    allowed_transitions,
    can_transition,
    event_color,
    map_category,
    parse_status,
)
from careops.services.overlap_validator import OverlapValidator

if TYPE_CHECKING:
    from careops.infra.database.models.appointment import Appointment
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "agency_id",
    "client_id",
    "worker_id",
    "date",
    "start_time",
    "end_time",
    "status",
    "category",
)

UPDATABLE_FIELDS = frozenset({
    "client_id",
    "worker_id",
    "date",
    "start_time",
    "end_time",
    "status",
    "category",
    "notes",
    "charge_rate",
    "rate_sheet_id",
    "client_visit_type_id",
})

# Any of these moving re-runs the overlap check
_WINDOW_FIELDS = frozenset({"worker_id", "date", "start_time", "end_time"})

UNKNOWN_NAME = "Unknown"


@dataclass(frozen=True)
class ScheduleView:
    """Read model of one appointment. Color and title are derived on every read."""

    id: UUID
    agency_id: UUID
    client_id: UUID
    worker_id: UUID
    date: _dt.date
    start_time: str
    end_time: str
    start: _dt.datetime
    end: _dt.datetime
    category: str
    status: str
    notes: Optional[str]
    charge_rate: Optional[Decimal]
    rate_sheet_id: Optional[UUID]
    client_visit_type_id: Optional[UUID]
    template_id: Optional[UUID]
    color: str
    title: str
    worker_name: str
    client_name: str


def build_view(appointment: "Appointment", names: Mapping[UUID, str]) -> ScheduleView:
    worker_name = names.get(appointment.worker_id) or UNKNOWN_NAME
    client_name = names.get(appointment.client_id) or UNKNOWN_NAME
    return ScheduleView(
        id=appointment.id,
        agency_id=appointment.agency_id,
        client_id=appointment.client_id,
        worker_id=appointment.worker_id,
        date=appointment.date,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        start=combine(appointment.date, appointment.start_time),
        end=combine(appointment.date, appointment.end_time),
        category=appointment.category,
        status=appointment.status,
        notes=appointment.notes,
        charge_rate=appointment.charge_rate,
        rate_sheet_id=appointment.rate_sheet_id,
        client_visit_type_id=appointment.client_visit_type_id,
        template_id=appointment.template_id,
        color=event_color(appointment.category),
        title=f"{client_name} with {worker_name}",
        worker_name=worker_name,
        client_name=client_name,
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


def _coerce_optional_uuid(value: Any, field: str) -> Optional[UUID]:
    if _is_blank(value):
        return None
    return _coerce_uuid(value, field)


def _coerce_charge_rate(value: Any) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    try:
        rate = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(
            "charge_rate must be a number",
            details={"field": "charge_rate", "value": str(value)},
            cause=exc,
        ) from exc
    if not rate.is_finite() or rate < 0:
        raise ValidationError(
            "charge_rate must be a non-negative number",
            details={"field": "charge_rate", "value": str(value)},
        )
    return rate


def _require_status(value: Any) -> AppointmentStatus:
    status = parse_status(value)
    if status is None:
        raise ValidationError(
            "Invalid status",
            details={
                "field": "status",
                "value": str(value),
                "valid_statuses": [s.value for s in AppointmentStatus],
            },
        )
    return status


def _ensure_window(date: _dt.date, start_time: str, end_time: str) -> None:
    if combine(date, end_time) <= combine(date, start_time):
        raise ValidationError(
            "End time must be after start time",
            details={"start_time": start_time, "end_time": end_time},
        )


def normalize_category(value: Any) -> AppointmentCategory:
    """External category vocabulary → internal enum; unknown input becomes APPOINTMENT."""
    mapped = map_category(value)
    if mapped is UNRECOGNIZED:
        logger.warning(
            "ScheduleService: unrecognized category %r, using %s",
            value, DEFAULT_CATEGORY.value,
        )
        return DEFAULT_CATEGORY
    return mapped


class ScheduleService:
    """Orchestrates validation, overlap checking and persistence of single appointments.

    All validation and conflict checks run before anything is written. When
    ``config.lock_worker_day`` is on, create/update take a transaction-scoped
    lock on (worker, date) before reading the worker's day, so two concurrent
    requests cannot both pass the overlap check.
    """

    def __init__(
        self,
        session: Optional["AsyncSession"] = None,
        *,
        config: Optional[SchedulingConfig] = None,
        repo: Optional[AppointmentRepository] = None,
        users: Optional[UserRepository] = None,
        validator: Optional[OverlapValidator] = None,
    ) -> None:
        self._config = config or load_scheduling_config()
        self._repo = repo if repo is not None else AppointmentRepository(session)
        self._users = users if users is not None else UserRepository(session)
        self._validator = validator if validator is not None else OverlapValidator(repo=self._repo)

    # ── Commands ──────────────────────────────────────────────────────────────

    async def create(self, data: Mapping[str, Any]) -> ScheduleView:
        missing = [f for f in REQUIRED_FIELDS if _is_blank(data.get(f))]
        if missing:
            raise ValidationError(
                "Missing required fields",
                details={"missing": missing, "required": list(REQUIRED_FIELDS)},
            )

        start_time = normalize_time(data["start_time"], field="start_time")
        end_time = normalize_time(data["end_time"], field="end_time")
        date = coerce_date(data["date"])
        _ensure_window(date, start_time, end_time)

        row: Dict[str, Any] = {
            "agency_id": _coerce_uuid(data["agency_id"], "agency_id"),
            "client_id": _coerce_uuid(data["client_id"], "client_id"),
            "worker_id": _coerce_uuid(data["worker_id"], "worker_id"),
            "date": date,
            "start_time": start_time,
            "end_time": end_time,
            "status": _require_status(data["status"]).value,
            "category": normalize_category(data["category"]).value,
            "notes": data.get("notes") or None,
            "charge_rate": _coerce_charge_rate(data.get("charge_rate")),
            "rate_sheet_id": _coerce_optional_uuid(data.get("rate_sheet_id"), "rate_sheet_id"),
            "client_visit_type_id": _coerce_optional_uuid(
                data.get("client_visit_type_id"), "client_visit_type_id"
            ),
        }

        await self._guard_window(row["worker_id"], date, start_time, end_time)
        appointment = await self._repo.create(row)
        logger.info(
            "ScheduleService: created appointment %s for worker %s on %s %s-%s",
            appointment.id, appointment.worker_id, appointment.date,
            appointment.start_time, appointment.end_time,
        )
        return await self._view(appointment)

    async def update(self, appointment_id: UUID, changes: Mapping[str, Any]) -> ScheduleView:
        """Apply a partial update; fields that are absent (or None) keep their value."""
        supplied = {
            k: v for k, v in changes.items()
            if k in UPDATABLE_FIELDS and v is not None
        }
        if not supplied:
            raise ValidationError("No fields provided for update.")

        existing = await self._repo.get_by_id(appointment_id)
        if existing is None:
            raise NotFoundError("Schedule not found", details={"id": str(appointment_id)})

        row = self._coerce_partial(supplied)

        if "status" in row and self._config.strict_status_transitions:
            self._check_transition(existing.status, row["status"])

        if _WINDOW_FIELDS & row.keys():
            worker_id = row.get("worker_id", existing.worker_id)
            date = row.get("date", existing.date)
            start_time = row.get("start_time", existing.start_time)
            end_time = row.get("end_time", existing.end_time)
            _ensure_window(date, start_time, end_time)
            await self._guard_window(
                worker_id, date, start_time, end_time, exclude_id=appointment_id
            )

        updated = await self._repo.update(appointment_id, row)
        if updated is None:
            raise NotFoundError("Schedule not found", details={"id": str(appointment_id)})
        logger.info(
            "ScheduleService: updated appointment %s fields=%s (worker %s on %s)",
            appointment_id, sorted(row), updated.worker_id, updated.date,
        )
        return await self._view(updated)

    async def delete(self, appointment_id: UUID) -> None:
        if not await self._repo.delete(appointment_id):
            raise NotFoundError("Schedule not found", details={"id": str(appointment_id)})
        logger.info("ScheduleService: deleted appointment %s", appointment_id)

    # ── Queries ───────────────────────────────────────────────────────────────

    async def get(self, appointment_id: UUID) -> ScheduleView:
        appointment = await self._repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Schedule not found", details={"id": str(appointment_id)})
        return await self._view(appointment)

    async def list(
        self,
        *,
        agency_id: Optional[UUID] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        worker_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        date_from: Optional[Any] = None,
        date_to: Optional[Any] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[ScheduleView], int]:
        """One page of appointments ordered by (date, start_time) plus the total match count.

        ``date_from``/``date_to`` are inclusive. A limit above
        ``max_page_limit`` is clamped.
        """
        limit = self._page_limit(limit, offset)
        filters = self._list_filters(
            agency_id=agency_id,
            status=status,
            category=category,
            worker_id=worker_id,
            client_id=client_id,
            date_from=date_from,
            date_to=date_to,
        )
        items, total = await self._repo.list_filtered(skip=offset, limit=limit, **filters)
        return await self._views(items), total

    async def list_for_agency(self, agency_id: UUID) -> List[ScheduleView]:
        """Every appointment of the agency, unpaged."""
        items, _ = await self._repo.list_filtered(skip=0, limit=None, agency_id=agency_id)
        return await self._views(items)

    async def list_for_worker(self, worker_id: UUID) -> List[ScheduleView]:
        """Every appointment of the worker, unpaged."""
        items, _ = await self._repo.list_filtered(skip=0, limit=None, worker_id=worker_id)
        return await self._views(items)

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _guard_window(
        self,
        worker_id: UUID,
        date: _dt.date,
        start_time: str,
        end_time: str,
        *,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        if self._config.lock_worker_day:
            await self._repo.lock_worker_day(worker_id, date)
        await self._validator.ensure_available(
            worker_id, date, start_time, end_time, exclude_id=exclude_id
        )

    @staticmethod
    def _coerce_partial(supplied: Mapping[str, Any]) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for key, value in supplied.items():
            if key in ("client_id", "worker_id"):
                row[key] = _coerce_uuid(value, key)
            elif key in ("rate_sheet_id", "client_visit_type_id"):
                row[key] = _coerce_optional_uuid(value, key)
            elif key == "date":
                row[key] = coerce_date(value)
            elif key in ("start_time", "end_time"):
                row[key] = normalize_time(value, field=key)
            elif key == "status":
                row[key] = _require_status(value).value
            elif key == "category":
                row[key] = normalize_category(value).value
            elif key == "charge_rate":
                row[key] = _coerce_charge_rate(value)
            elif key == "notes":
                row[key] = value or None
        return row

    @staticmethod
    def _check_transition(current_raw: str, target_raw: str) -> None:
        current = parse_status(current_raw)
        target = AppointmentStatus(target_raw)
        if current is None:
            # Stored value predates the status enum; accept any valid target.
            return
        if not can_transition(current, target):
            raise ValidationError(
                f"Cannot change status from {current.value} to {target.value}",
                details={
                    "field": "status",
                    "from": current.value,
                    "to": target.value,
                    "allowed": sorted(s.value for s in allowed_transitions(current)),
                },
            )

    def effective_limit(self, limit: Optional[int]) -> int:
        """Page size actually used for ``limit``: the default when None, clamped to the max."""
        if limit is None:
            return self._config.default_page_limit
        return min(limit, self._config.max_page_limit)

    def _page_limit(self, limit: Optional[int], offset: int) -> int:
        if limit is not None and limit < 1:
            raise ValidationError("limit must be >= 1", details={"field": "limit", "value": limit})
        if offset < 0:
            raise ValidationError("offset must be >= 0", details={"field": "offset", "value": offset})
        return self.effective_limit(limit)

    @staticmethod
    def _list_filters(
        *,
        agency_id: Optional[UUID],
        status: Optional[str],
        category: Optional[str],
        worker_id: Optional[UUID],
        client_id: Optional[UUID],
        date_from: Optional[Any],
        date_to: Optional[Any],
    ) -> Dict[str, Any]:
        filters: Dict[str, Any] = {}
        if agency_id is not None:
            filters["agency_id"] = _coerce_uuid(agency_id, "agency_id")
        if worker_id is not None:
            filters["worker_id"] = _coerce_uuid(worker_id, "worker_id")
        if client_id is not None:
            filters["client_id"] = _coerce_uuid(client_id, "client_id")
        if not _is_blank(status):
            filters["status"] = _require_status(status).value
        if not _is_blank(category):
            filters["category"] = normalize_category(category).value
        if not _is_blank(date_from):
            filters["date_from"] = coerce_date(date_from, field="date_from")
        if not _is_blank(date_to):
            filters["date_to"] = coerce_date(date_to, field="date_to")
        if "date_from" in filters and "date_to" in filters and filters["date_from"] > filters["date_to"]:
            raise ValidationError(
                "date_from must not be after date_to",
                details={
                    "date_from": filters["date_from"].isoformat(),
                    "date_to": filters["date_to"].isoformat(),
                },
            )
        return filters

    async def _names_for(self, appointments: Iterable["Appointment"]) -> Dict[UUID, str]:
        ids = set()
        for a in appointments:
            ids.add(a.client_id)
            ids.add(a.worker_id)
        return await self._users.get_full_names(ids)

    async def _view(self, appointment: "Appointment") -> ScheduleView:
        names = await self._names_for([appointment])
        return build_view(appointment, names)

    async def _views(self, appointments: List["Appointment"]) -> List[ScheduleView]:
        names = await self._names_for(appointments)
        return [build_view(a, names) for a in appointments]
