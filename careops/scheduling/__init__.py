"""Pure scheduling domain: vocabulary, time utilities and overlap arithmetic."""
from careops.scheduling.overlap import first_overlap, windows_overlap
from careops.scheduling.time_utils import (
    TIME_PATTERN,
    coerce_date,
    coerce_datetime,
    combine,
    is_valid_time,
    next_occurrence_of,
    normalize_time,
    parse_time_of_day,
    to_minutes,
)
from careops.scheduling.types import (
    DEFAULT_CATEGORY,
    TERMINAL_STATUSES,
    UNRECOGNIZED,
    AppointmentCategory,
    AppointmentStatus,
    DayOfWeek,
    LeaveType,
    allowed_transitions,
    can_transition,
    event_color,
    leave_color,
    map_category,
    parse_status,
)

__all__ = [
    "AppointmentCategory",
    "AppointmentStatus",
    "DayOfWeek",
    "LeaveType",
    "DEFAULT_CATEGORY",
    "TERMINAL_STATUSES",
    "UNRECOGNIZED",
    "allowed_transitions",
    "can_transition",
    "event_color",
    "leave_color",
    "map_category",
    "parse_status",
    "TIME_PATTERN",
    "coerce_date",
    "coerce_datetime",
    "combine",
    "is_valid_time",
    "next_occurrence_of",
    "normalize_time",
    "parse_time_of_day",
    "to_minutes",
    "first_overlap",
    "windows_overlap",
]
