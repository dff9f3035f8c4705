"""
careops.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from careops.infra.database.models.base import Base, TimestampMixin, _uuid_pk
from careops.infra.database.models.user import User
from careops.infra.database.models.appointment import Appointment
from careops.infra.database.models.schedule_template import ScheduleTemplate, TemplateVisit
from careops.infra.database.models.leave_event import LeaveEvent

__all__ = [
    "Base",
    "TimestampMixin",
    "_uuid_pk",
    "User",
    "Appointment",
    "ScheduleTemplate",
    "TemplateVisit",
    "LeaveEvent",
]
