"""Service layer: overlap validation, schedules, templates, template materialization and leave."""
from careops.services.leave_event_service import LeaveEventService, LeaveEventView
from careops.services.overlap_validator import OverlapValidator
from careops.services.schedule_service import ScheduleService, ScheduleView
from careops.services.template_materializer import (
    MaterializationResult,
    SkippedVisit,
    TemplateMaterializer,
)
from careops.services.template_service import TemplateService

__all__ = [
    "LeaveEventService",
    "LeaveEventView",
    "OverlapValidator",
    "ScheduleService",
    "ScheduleView",
    "TemplateService",
    "TemplateMaterializer",
    "MaterializationResult",
    "SkippedVisit",
]
