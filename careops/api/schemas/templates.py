"""Pydantic schemas for the Schedule Templates API."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TemplateVisitIn(BaseModel):
    day: Optional[str] = Field(None, description="MONDAY … SUNDAY")
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    worker_id: Optional[str] = None
    worker2_id: Optional[str] = None
    worker3_id: Optional[str] = None
    rate_sheet_id: Optional[str] = None
    client_visit_type_id: Optional[str] = Field(
        None, description="Kept only when it is a generated id; plain type names are dropped."
    )
    name: Optional[str] = None
    end_status: Optional[str] = None


class TemplateCreate(BaseModel):
    agency_id: Optional[str] = None
    client_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=255)
    description: str = ""
    is_active: bool = False
    visits: List[TemplateVisitIn] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    """Omitted fields are kept. ``visits``, when present, replaces the whole visit set."""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    visits: Optional[List[TemplateVisitIn]] = None


class TemplateVisitResponse(BaseModel):
    id: UUID
    day: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    worker_id: Optional[UUID] = None
    worker2_id: Optional[UUID] = None
    worker3_id: Optional[UUID] = None
    rate_sheet_id: Optional[UUID] = None
    client_visit_type_id: Optional[UUID] = None
    name: str = "Visit"
    end_status: str = "SAME_DAY"

    class Config:
        from_attributes = True


class TemplateResponse(BaseModel):
    id: UUID
    agency_id: UUID
    client_id: UUID
    name: str
    description: str
    is_active: bool
    visits: List[TemplateVisitResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplyTemplateRequest(BaseModel):
    reference_date: Optional[date] = Field(
        None, description="Anchor for next-weekday computation; defaults to today."
    )


class SkippedVisitResponse(BaseModel):
    visit_id: Optional[UUID] = None
    reason: str
    code: str


class MaterializationResponse(BaseModel):
    template_id: UUID
    reference_date: date
    inserted_count: int
    appointment_ids: List[UUID]
    skipped: List[SkippedVisitResponse]
