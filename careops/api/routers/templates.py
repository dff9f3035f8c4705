"""Schedule Templates API: CRUD, activation and application of weekly templates."""
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from careops.api.dependencies import get_template_materializer, get_template_service
from careops.api.schemas.schedules import MessageResponse
from careops.api.schemas.templates import (
    ApplyTemplateRequest,
    MaterializationResponse,
    SkippedVisitResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from careops.services.template_materializer import TemplateMaterializer
from careops.services.template_service import TemplateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule-templates", tags=["schedule-templates"])


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    body: TemplateCreate,
    service: TemplateService = Depends(get_template_service),
):
    template = await service.create(body.model_dump())
    return TemplateResponse.model_validate(template)


@router.get("/{client_id}/{agency_id}", response_model=List[TemplateResponse])
async def list_templates(
    client_id: UUID,
    agency_id: UUID,
    service: TemplateService = Depends(get_template_service),
):
    templates = await service.list(client_id, agency_id)
    return [TemplateResponse.model_validate(t) for t in templates]


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: UUID,
    service: TemplateService = Depends(get_template_service),
):
    return TemplateResponse.model_validate(await service.get(template_id))


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: UUID,
    body: TemplateUpdate,
    service: TemplateService = Depends(get_template_service),
):
    template = await service.update(template_id, body.model_dump(exclude_unset=True))
    return TemplateResponse.model_validate(template)


@router.delete("/{template_id}", response_model=MessageResponse)
async def delete_template(
    template_id: UUID,
    service: TemplateService = Depends(get_template_service),
):
    await service.delete(template_id)
    return MessageResponse(message="Template deleted successfully")


@router.put("/activate/{template_id}/{client_id}", response_model=MessageResponse)
async def activate_template(
    template_id: UUID,
    client_id: UUID,
    service: TemplateService = Depends(get_template_service),
):
    await service.activate(template_id, client_id)
    return MessageResponse(message="Template activated successfully")


@router.put("/deactivate/{template_id}", response_model=MessageResponse)
async def deactivate_template(
    template_id: UUID,
    service: TemplateService = Depends(get_template_service),
):
    await service.deactivate(template_id)
    return MessageResponse(message="Template deactivated successfully")


@router.post("/{template_id}/apply", response_model=MaterializationResponse, status_code=201)
async def apply_template(
    template_id: UUID,
    body: Optional[ApplyTemplateRequest] = None,
    materializer: TemplateMaterializer = Depends(get_template_materializer),
):
    reference_date = body.reference_date if body is not None else None
    result = await materializer.apply_template(template_id, reference_date=reference_date)
    return MaterializationResponse(
        template_id=result.template_id,
        reference_date=result.reference_date,
        inserted_count=result.inserted_count,
        appointment_ids=result.appointment_ids,
        skipped=[
            SkippedVisitResponse(visit_id=s.visit_id, reason=s.reason, code=s.code)
            for s in result.skipped
        ],
    )
