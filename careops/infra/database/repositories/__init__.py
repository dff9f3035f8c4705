"""Repositories for the careops database."""
from careops.infra.database.repositories.appointment import AppointmentRepository
from careops.infra.database.repositories.base import BaseRepository
from careops.infra.database.repositories.leave_event import LeaveEventRepository
from careops.infra.database.repositories.schedule_template import ScheduleTemplateRepository
from careops.infra.database.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "AppointmentRepository",
    "LeaveEventRepository",
    "ScheduleTemplateRepository",
    "UserRepository",
]
