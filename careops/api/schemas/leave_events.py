"""Pydantic schemas for the Leave Events API."""
from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from careops.api.schemas.schedules import PersonName


class LeaveEventCreate(BaseModel):
    user_id: Optional[str] = None
    agency_id: Optional[str] = None
    start_date: Optional[str] = Field(None, description="ISO 8601 date-time; no offset means UTC.")
    end_date: Optional[str] = Field(None, description="ISO 8601 date-time, not before start_date.")
    event_type: Optional[str] = Field(
        None, description="ANNUAL_LEAVE, SICK_LEAVE, PUBLIC_HOLIDAY, ..., TOIL or OTHER"
    )
    notes: Optional[str] = None
    pay_rate: Optional[Decimal] = None
    color: Optional[str] = Field(None, max_length=20, description="Defaults to the leave type's color.")


class LeaveEventResponse(BaseModel):
    id: UUID
    title: str
    agency_id: UUID
    user_id: UUID
    start_date: _dt.datetime
    end_date: _dt.datetime
    event_type: str
    notes: Optional[str] = None
    pay_rate: Optional[Decimal] = None
    color: str
    user: PersonName
