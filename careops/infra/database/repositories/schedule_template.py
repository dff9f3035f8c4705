"""ScheduleTemplate repository: templates and their child visits."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete as sa_delete, select, update as sa_update
from sqlalchemy.orm import selectinload

from careops.infra.database.models.schedule_template import ScheduleTemplate, TemplateVisit
from careops.infra.database.repositories.base import BaseRepository


class ScheduleTemplateRepository(BaseRepository[ScheduleTemplate]):
    model = ScheduleTemplate

    async def get_with_visits(self, id: UUID) -> Optional[ScheduleTemplate]:
        stmt = (
            select(ScheduleTemplate)
            .options(selectinload(ScheduleTemplate.visits))
            .where(ScheduleTemplate.id == id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_client(
        self,
        client_id: UUID,
        agency_id: Optional[UUID] = None,
    ) -> List[ScheduleTemplate]:
        stmt = (
            select(ScheduleTemplate)
            .options(selectinload(ScheduleTemplate.visits))
            .where(ScheduleTemplate.client_id == client_id)
            .order_by(ScheduleTemplate.created_at)
        )
        if agency_id is not None:
            stmt = stmt.where(ScheduleTemplate.agency_id == agency_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def lock_client_templates(self, client_id: UUID) -> List[UUID]:
        """SELECT ... FOR UPDATE on every template of the client; returns their ids."""
        stmt = (
            select(ScheduleTemplate.id)
            .where(ScheduleTemplate.client_id == client_id)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def deactivate_all_for_client(self, client_id: UUID) -> int:
        stmt = (
            sa_update(ScheduleTemplate)
            .where(ScheduleTemplate.client_id == client_id)
            .where(ScheduleTemplate.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def set_active(self, id: UUID, is_active: bool) -> Optional[ScheduleTemplate]:
        return await self.update(id, {"is_active": is_active})

    async def replace_visits(
        self,
        template_id: UUID,
        visits: List[Dict[str, Any]],
    ) -> List[TemplateVisit]:
        """Delete every visit of the template, then insert ``visits``.

        Callers wrap this in ``transaction()`` so a failure never leaves a mix
        of old and new visits.
        """
        await self.session.execute(
            sa_delete(TemplateVisit)
            .where(TemplateVisit.template_id == template_id)
            .execution_options(synchronize_session=False)
        )
        instances = [TemplateVisit(template_id=template_id, **v) for v in visits]
        self.session.add_all(instances)
        await self.session.flush()
        return instances

    async def refresh_visits(self, template: ScheduleTemplate) -> ScheduleTemplate:
        """Reload the visits collection after replace_visits() bypassed the ORM."""
        await self.session.refresh(template, attribute_names=["visits"])
        return template
