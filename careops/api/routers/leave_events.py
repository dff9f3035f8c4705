"""Leave Events API: record, list and delete leave on users' calendars."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from careops.api.dependencies import get_leave_event_service
from careops.api.schemas.leave_events import LeaveEventCreate, LeaveEventResponse
from careops.api.schemas.schedules import MessageResponse, PersonName
from careops.services.leave_event_service import LeaveEventService, LeaveEventView

router = APIRouter(prefix="/leave-events", tags=["leave-events"])


def _to_response(v: LeaveEventView) -> LeaveEventResponse:
    return LeaveEventResponse(
        id=v.id,
        title=v.title,
        agency_id=v.agency_id,
        user_id=v.user_id,
        start_date=v.start_date,
        end_date=v.end_date,
        event_type=v.event_type,
        notes=v.notes,
        pay_rate=v.pay_rate,
        color=v.color,
        user=PersonName(full_name=v.user_name),
    )


@router.post("", response_model=LeaveEventResponse, status_code=201)
async def create_leave_event(
    body: LeaveEventCreate,
    service: LeaveEventService = Depends(get_leave_event_service),
):
    return _to_response(await service.create(body.model_dump()))


@router.get("/agency/{agency_id}", response_model=List[LeaveEventResponse])
async def list_agency_leave_events(
    agency_id: UUID,
    start_date: Optional[str] = Query(None, description="Keep leave ending on or after this date"),
    end_date: Optional[str] = Query(None, description="Keep leave starting on or before this date"),
    service: LeaveEventService = Depends(get_leave_event_service),
):
    events = await service.list_for_agency(agency_id, date_from=start_date, date_to=end_date)
    return [_to_response(v) for v in events]


@router.get("/user/{user_id}", response_model=List[LeaveEventResponse])
async def list_user_leave_events(
    user_id: UUID,
    service: LeaveEventService = Depends(get_leave_event_service),
):
    return [_to_response(v) for v in await service.list_for_user(user_id)]


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_leave_event(
    event_id: UUID,
    service: LeaveEventService = Depends(get_leave_event_service),
):
    await service.delete(event_id)
    return MessageResponse(message="Leave event deleted successfully")
