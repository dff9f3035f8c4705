"""Pydantic schemas for the Schedules API (concrete appointments)."""
from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ScheduleCreate(BaseModel):
    """Required-field checks live in ScheduleService so the error names every missing field."""
    agency_id: Optional[str] = None
    client_id: Optional[str] = None
    worker_id: Optional[str] = None
    date: Optional[str] = Field(None, description="YYYY-MM-DD; an ISO datetime is truncated to its date.")
    start_time: Optional[str] = Field(None, description="HH:mm, 24-hour")
    end_time: Optional[str] = Field(None, description="HH:mm, 24-hour")
    status: Optional[str] = None
    category: Optional[str] = Field(
        None,
        description="APPOINTMENT, WEEKLY_CHECKUP, HOME_VISIT, OTHER, or a legacy value (CHECKUP, EMERGENCY, ROUTINE).",
    )
    notes: Optional[str] = None
    charge_rate: Optional[Decimal] = None
    rate_sheet_id: Optional[str] = None
    client_visit_type_id: Optional[str] = None


class ScheduleUpdate(BaseModel):
    client_id: Optional[str] = None
    worker_id: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    charge_rate: Optional[Decimal] = None
    rate_sheet_id: Optional[str] = None
    client_visit_type_id: Optional[str] = None


class PersonName(BaseModel):
    full_name: str


class ScheduleResponse(BaseModel):
    id: UUID
    title: str
    agency_id: UUID
    client_id: UUID
    worker_id: UUID
    resource_id: UUID
    date: _dt.date
    start_time: str
    end_time: str
    start: _dt.datetime
    end: _dt.datetime
    category: str
    status: str
    notes: Optional[str] = None
    charge_rate: Optional[Decimal] = None
    rate_sheet_id: Optional[UUID] = None
    client_visit_type_id: Optional[UUID] = None
    template_id: Optional[UUID] = None
    color: str
    care_worker: PersonName
    client: PersonName


class ScheduleListMeta(BaseModel):
    total: int
    limit: int
    offset: int


class ScheduleListResponse(BaseModel):
    data: List[ScheduleResponse]
    meta: ScheduleListMeta


class MessageResponse(BaseModel):
    message: str
