"""TemplateService: CRUD and activation of client-scoped weekly schedule templates."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from careops.core.exceptions import NotFoundError, ValidationError
from careops.infra.database.repositories.schedule_template import ScheduleTemplateRepository
from careops.scheduling.time_utils import normalize_time
from careops.scheduling.types import DayOfWeek

if TYPE_CHECKING:
    from careops.infra.database.models.schedule_template import ScheduleTemplate
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_TEMPLATE_FIELDS = ("name", "description", "is_active")
# Malformed worker and rate sheet ids are rejected; the others fall back to None
_STRICT_VISIT_ID_FIELDS = ("worker_id", "rate_sheet_id")
_LENIENT_VISIT_ID_FIELDS = ("worker2_id", "worker3_id", "client_visit_type_id")


def _as_uuid_or_none(value: Any) -> Optional[UUID]:
    """Generated identifiers pass through; plain enum strings such as "PERSONAL_CARE" become None."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _required_uuid(value: Any, field: str) -> UUID:
    parsed = _as_uuid_or_none(value)
    if parsed is None:
        raise ValidationError(
            f"{field} must be a valid id",
            details={"field": field, "value": None if value is None else str(value)},
        )
    return parsed


def normalize_visit(raw: Mapping[str, Any], position: int = 0) -> Dict[str, Any]:
    """Turn one incoming visit definition into TemplateVisit column values.

    Missing day, time or worker is allowed (the visit is stored and skipped at
    materialization time); a day or time that is present but malformed is
    rejected, as is a worker or rate sheet id that is not an id.
    """
    visit: Dict[str, Any] = {}

    day_raw = raw.get("day")
    if day_raw in (None, ""):
        visit["day"] = None
    else:
        day = DayOfWeek.parse(day_raw)
        if day is None:
            raise ValidationError(
                "Invalid day of week",
                details={"visit": position, "field": "day", "value": str(day_raw)},
            )
        visit["day"] = day.value

    for field in ("start_time", "end_time"):
        value = raw.get(field)
        if value in (None, ""):
            visit[field] = None
            continue
        try:
            visit[field] = normalize_time(value, field=field)
        except ValidationError as exc:
            raise exc.with_details(visit=position)

    for field in _STRICT_VISIT_ID_FIELDS:
        value = raw.get(field)
        if value in (None, ""):
            visit[field] = None
            continue
        visit[field] = _as_uuid_or_none(value)
        if visit[field] is None:
            raise ValidationError(
                f"{field} must be a valid id",
                details={"visit": position, "field": field, "value": str(value)},
            )
    for field in _LENIENT_VISIT_ID_FIELDS:
        visit[field] = _as_uuid_or_none(raw.get(field))

    if raw.get("name"):
        visit["name"] = str(raw["name"])
    if raw.get("end_status"):
        visit["end_status"] = str(raw["end_status"])
    return visit


class TemplateService:
    """Manage schedule templates and their visit definitions.

    At most one template per client is active. Every path that turns a
    template on (create, update, activate) locks the client's templates and
    switches the others off in the same transaction.
    """

    def __init__(
        self,
        session: Optional["AsyncSession"] = None,
        *,
        repo: Optional[ScheduleTemplateRepository] = None,
    ) -> None:
        self._repo = repo if repo is not None else ScheduleTemplateRepository(session)

    async def create(self, data: Mapping[str, Any]) -> "ScheduleTemplate":
        agency_id = _required_uuid(data.get("agency_id"), "agency_id")
        client_id = _required_uuid(data.get("client_id"), "client_id")
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Template name is required", details={"field": "name"})
        is_active = bool(data.get("is_active", False))
        visits = [normalize_visit(v, i) for i, v in enumerate(data.get("visits") or [])]

        async with self._repo.transaction():
            if is_active:
                await self._repo.lock_client_templates(client_id)
                await self._repo.deactivate_all_for_client(client_id)
            template = await self._repo.create({
                "agency_id": agency_id,
                "client_id": client_id,
                "name": name,
                "description": data.get("description") or "",
                "is_active": is_active,
            })
            if visits:
                await self._repo.replace_visits(template.id, visits)
            template = await self._repo.refresh_visits(template)

        logger.info(
            "TemplateService: created template %s (%s) for client %s active=%s visits=%d",
            template.id, template.name, client_id, is_active, len(visits),
        )
        return template

    async def update(self, template_id: UUID, data: Mapping[str, Any]) -> "ScheduleTemplate":
        """Update scalar fields and, when ``visits`` is given, replace the whole visit set."""
        fields = {k: data[k] for k in _TEMPLATE_FIELDS if data.get(k) is not None}
        visits_raw: Optional[Sequence[Mapping[str, Any]]] = data.get("visits")
        if not fields and visits_raw is None:
            raise ValidationError("No fields provided for update.")
        if "name" in fields:
            fields["name"] = str(fields["name"]).strip()
            if not fields["name"]:
                raise ValidationError("Template name is required", details={"field": "name"})
        visits = (
            [normalize_visit(v, i) for i, v in enumerate(visits_raw)]
            if visits_raw is not None
            else None
        )

        template = await self._repo.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template not found", details={"id": str(template_id)})

        async with self._repo.transaction():
            if fields.get("is_active"):
                await self._repo.lock_client_templates(template.client_id)
                await self._repo.deactivate_all_for_client(template.client_id)
            if fields:
                template = await self._repo.update(template_id, fields)
            if visits is not None:
                await self._repo.replace_visits(template_id, visits)
            template = await self._repo.refresh_visits(template)

        logger.info(
            "TemplateService: updated template %s fields=%s visits=%s",
            template_id, sorted(fields), "replaced" if visits is not None else "kept",
        )
        return template

    async def delete(self, template_id: UUID) -> None:
        if not await self._repo.delete(template_id):
            raise NotFoundError("Template not found", details={"id": str(template_id)})
        logger.info("TemplateService: deleted template %s", template_id)

    async def activate(self, template_id: UUID, client_id: UUID) -> "ScheduleTemplate":
        """Make ``template_id`` the only active template of ``client_id``."""
        async with self._repo.transaction():
            owned = await self._repo.lock_client_templates(client_id)
            if template_id not in owned:
                raise NotFoundError(
                    "Template not found for client",
                    details={"id": str(template_id), "client_id": str(client_id)},
                )
            switched_off = await self._repo.deactivate_all_for_client(client_id)
            template = await self._repo.set_active(template_id, True)
        logger.info(
            "TemplateService: activated template %s for client %s (%d deactivated)",
            template_id, client_id, switched_off,
        )
        return template

    async def deactivate(self, template_id: UUID) -> "ScheduleTemplate":
        template = await self._repo.set_active(template_id, False)
        if template is None:
            raise NotFoundError("Template not found", details={"id": str(template_id)})
        logger.info("TemplateService: deactivated template %s", template_id)
        return template

    async def list(
        self,
        client_id: UUID,
        agency_id: Optional[UUID] = None,
    ) -> List["ScheduleTemplate"]:
        return await self._repo.list_for_client(client_id, agency_id)

    async def get(self, template_id: UUID) -> "ScheduleTemplate":
        template = await self._repo.get_with_visits(template_id)
        if template is None:
            raise NotFoundError("Template not found", details={"id": str(template_id)})
        return template
