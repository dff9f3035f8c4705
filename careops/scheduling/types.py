"""Core vocabulary of the scheduling engine: statuses, categories, weekdays."""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional, Union


class AppointmentStatus(str, Enum):
    """Lifecycle of a concrete appointment.

    PENDING → CONFIRMED → COMPLETED, with CANCELLED reachable from PENDING or
    CONFIRMED. COMPLETED and CANCELLED are terminal.
    """
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AppointmentCategory(str, Enum):
    """The internal four-value category enum."""
    APPOINTMENT = "APPOINTMENT"
    WEEKLY_CHECKUP = "WEEKLY_CHECKUP"
    HOME_VISIT = "HOME_VISIT"
    OTHER = "OTHER"


class DayOfWeek(str, Enum):
    """Symbolic weekday used by template visits. ``index`` follows date.weekday()."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        return _DAY_INDEX[self]

    @classmethod
    def parse(cls, value: object) -> Optional["DayOfWeek"]:
        """Case-insensitive lookup; None for anything that is not a weekday name."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


_DAY_INDEX: Dict[DayOfWeek, int] = {day: i for i, day in enumerate(DayOfWeek)}


# ── Status machine ────────────────────────────────────────────────────────────

_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in _TRANSITIONS.items() if not nxt)


def parse_status(value: object) -> Optional[AppointmentStatus]:
    if isinstance(value, AppointmentStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return AppointmentStatus(value.strip().upper())
    except ValueError:
        return None


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Re-asserting the current status is always allowed."""
    return current == target or target in _TRANSITIONS[current]


def allowed_transitions(current: AppointmentStatus) -> FrozenSet[AppointmentStatus]:
    return _TRANSITIONS[current]


# ── Category vocabulary ───────────────────────────────────────────────────────

class _Unrecognized:
    """Outcome of map_category for input outside the known vocabulary."""

    _instance: Optional["_Unrecognized"] = None

    def __new__(cls) -> "_Unrecognized":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNRECOGNIZED"

    def __bool__(self) -> bool:
        return False


UNRECOGNIZED = _Unrecognized()

CategoryMapping = Union[AppointmentCategory, _Unrecognized]

# External vocabularies (form values, legacy enum members) → internal category
_CATEGORY_MAP: Dict[str, AppointmentCategory] = {
    "APPOINTMENT": AppointmentCategory.APPOINTMENT,
    "WEEKLY_CHECKUP": AppointmentCategory.WEEKLY_CHECKUP,
    "CHECKUP": AppointmentCategory.WEEKLY_CHECKUP,
    "HOME_VISIT": AppointmentCategory.HOME_VISIT,
    "OTHER": AppointmentCategory.OTHER,
    "EMERGENCY": AppointmentCategory.APPOINTMENT,
    "ROUTINE": AppointmentCategory.APPOINTMENT,
}

DEFAULT_CATEGORY = AppointmentCategory.APPOINTMENT


def map_category(value: object) -> CategoryMapping:
    """Total mapping from the external category vocabulary to the internal enum.

    Matching is case-insensitive on the trimmed string. Anything outside the
    closed vocabulary (including non-strings) maps to UNRECOGNIZED; callers
    decide whether to default or reject.
    """
    if isinstance(value, AppointmentCategory):
        return value
    if not isinstance(value, str):
        return UNRECOGNIZED
    return _CATEGORY_MAP.get(value.strip().upper(), UNRECOGNIZED)


_CATEGORY_COLORS: Dict[AppointmentCategory, str] = {
    AppointmentCategory.APPOINTMENT: "#4f46e5",     # indigo
    AppointmentCategory.WEEKLY_CHECKUP: "#10b981",  # emerald
    AppointmentCategory.HOME_VISIT: "#059669",      # green
    AppointmentCategory.OTHER: "#6b7280",           # gray
}

FALLBACK_COLOR = "#6b7280"


def event_color(category: object) -> str:
    """Display color for a category; stored values outside the enum render gray."""
    mapped = map_category(category)
    if mapped is UNRECOGNIZED:
        return FALLBACK_COLOR
    return _CATEGORY_COLORS[mapped]


# ── Leave vocabulary ──────────────────────────────────────────────────────────

class LeaveType(str, Enum):
    """Kind of absence recorded as a leave event on a user's calendar."""
    ANNUAL_LEAVE = "ANNUAL_LEAVE"
    SICK_LEAVE = "SICK_LEAVE"
    PUBLIC_HOLIDAY = "PUBLIC_HOLIDAY"
    UNPAID_LEAVE = "UNPAID_LEAVE"
    MATERNITY_LEAVE = "MATERNITY_LEAVE"
    PATERNITY_LEAVE = "PATERNITY_LEAVE"
    BEREAVEMENT_LEAVE = "BEREAVEMENT_LEAVE"
    EMERGENCY_LEAVE = "EMERGENCY_LEAVE"
    MEDICAL_APPOINTMENT = "MEDICAL_APPOINTMENT"
    TOIL = "TOIL"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: object) -> Optional["LeaveType"]:
        """Case-insensitive; "annual leave" and "ANNUAL_LEAVE" are the same type."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper().replace(" ", "_"))
        except ValueError:
            return None


_LEAVE_COLORS: Dict[LeaveType, str] = {
    LeaveType.ANNUAL_LEAVE: "#4CAF50",
    LeaveType.SICK_LEAVE: "#F44336",
    LeaveType.PUBLIC_HOLIDAY: "#2196F3",
    LeaveType.UNPAID_LEAVE: "#9E9E9E",
    LeaveType.MATERNITY_LEAVE: "#E91E63",
    LeaveType.PATERNITY_LEAVE: "#9C27B0",
    LeaveType.BEREAVEMENT_LEAVE: "#795548",
    LeaveType.EMERGENCY_LEAVE: "#FF9800",
    LeaveType.MEDICAL_APPOINTMENT: "#00BCD4",
    LeaveType.TOIL: "#FFC107",
}


def leave_color(leave_type: LeaveType) -> str:
    """Default display color when a leave event is created without one."""
    return _LEAVE_COLORS.get(leave_type, "#9E9E9E")
