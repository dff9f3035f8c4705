"""Schedules API: list, get, create, update, delete concrete appointments."""
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from careops.api.dependencies import get_schedule_service
from careops.api.schemas.schedules import (
    MessageResponse,
    PersonName,
    ScheduleCreate,
    ScheduleListMeta,
    ScheduleListResponse,
    ScheduleResponse,
    ScheduleUpdate,
)
from careops.services.schedule_service import ScheduleService, ScheduleView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["schedules"])


def _to_response(v: ScheduleView) -> ScheduleResponse:
    return ScheduleResponse(
        id=v.id,
        title=v.title,
        agency_id=v.agency_id,
        client_id=v.client_id,
        worker_id=v.worker_id,
        resource_id=v.worker_id,
        date=v.date,
        start_time=v.start_time,
        end_time=v.end_time,
        start=v.start,
        end=v.end,
        category=v.category,
        status=v.status,
        notes=v.notes,
        charge_rate=v.charge_rate,
        rate_sheet_id=v.rate_sheet_id,
        client_visit_type_id=v.client_visit_type_id,
        template_id=v.template_id,
        color=v.color,
        care_worker=PersonName(full_name=v.worker_name),
        client=PersonName(full_name=v.client_name),
    )


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    agency_id: Optional[UUID] = None,
    status: Optional[str] = None,
    category: Optional[str] = Query(None, description="Internal or legacy category value"),
    worker_id: Optional[UUID] = None,
    client_id: Optional[UUID] = None,
    start_date: Optional[str] = Query(None, description="Inclusive lower bound, YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="Inclusive upper bound, YYYY-MM-DD"),
    limit: Optional[int] = None,
    offset: int = 0,
    service: ScheduleService = Depends(get_schedule_service),
):
    items, total = await service.list(
        agency_id=agency_id,
        status=status,
        category=category,
        worker_id=worker_id,
        client_id=client_id,
        date_from=start_date,
        date_to=end_date,
        limit=limit,
        offset=offset,
    )
    return ScheduleListResponse(
        data=[_to_response(v) for v in items],
        meta=ScheduleListMeta(
            total=total,
            limit=service.effective_limit(limit),
            offset=offset,
        ),
    )


@router.get("/agency/{agency_id}", response_model=List[ScheduleResponse])
async def list_agency_schedules(
    agency_id: UUID,
    service: ScheduleService = Depends(get_schedule_service),
):
    return [_to_response(v) for v in await service.list_for_agency(agency_id)]


@router.get("/worker/{worker_id}", response_model=List[ScheduleResponse])
async def list_worker_schedules(
    worker_id: UUID,
    service: ScheduleService = Depends(get_schedule_service),
):
    return [_to_response(v) for v in await service.list_for_worker(worker_id)]


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: UUID,
    service: ScheduleService = Depends(get_schedule_service),
):
    return _to_response(await service.get(schedule_id))


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    body: ScheduleCreate,
    service: ScheduleService = Depends(get_schedule_service),
):
    view = await service.create(body.model_dump())
    return _to_response(view)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
@router.patch("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: UUID,
    body: ScheduleUpdate,
    service: ScheduleService = Depends(get_schedule_service),
):
    view = await service.update(schedule_id, body.model_dump(exclude_unset=True))
    return _to_response(view)


@router.delete("/{schedule_id}", response_model=MessageResponse)
async def delete_schedule(
    schedule_id: UUID,
    service: ScheduleService = Depends(get_schedule_service),
):
    await service.delete(schedule_id)
    return MessageResponse(message="Schedule deleted successfully")
