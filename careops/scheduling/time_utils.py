"""Time-of-day parsing, date/time combination and weekday lookahead.

All values are agency-local wall-clock times; nothing here converts between
timezones.
"""
from __future__ import annotations

import datetime as _dt
import re
from typing import Optional, Tuple, Union

from careops.core.exceptions import InvalidTimeFormatError, ValidationError
from careops.scheduling.types import DayOfWeek

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
# A calendar date, optionally followed by a time part after "T" or a space
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ].+)?$")

TimeOfDay = Tuple[int, int]


def is_valid_time(value: object) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def parse_time_of_day(value: object, *, field: str = "time") -> TimeOfDay:
    """Parse "HH:mm" (hour may be a single digit) into (hour, minute).

    Raises InvalidTimeFormatError for anything else, e.g. "25:00" or "9:5".
    """
    if not is_valid_time(value):
        raise InvalidTimeFormatError(
            "Invalid time format. Use HH:mm format",
            details={"field": field, "value": value},
        )
    hour, minute = str(value).split(":")
    return int(hour), int(minute)


def normalize_time(value: object, *, field: str = "time") -> str:
    """Validate and zero-pad: "9:05" -> "09:05"."""
    hour, minute = parse_time_of_day(value, field=field)
    return f"{hour:02d}:{minute:02d}"


def to_minutes(value: Union[str, TimeOfDay]) -> int:
    """Minutes since midnight."""
    hour, minute = parse_time_of_day(value) if isinstance(value, str) else value
    return hour * 60 + minute


def combine(date: _dt.date, time_of_day: Union[str, TimeOfDay]) -> _dt.datetime:
    """Naive datetime for comparisons only."""
    hour, minute = parse_time_of_day(time_of_day) if isinstance(time_of_day, str) else time_of_day
    return _dt.datetime.combine(date, _dt.time(hour, minute))


def next_occurrence_of(
    weekday: DayOfWeek,
    from_date: Optional[_dt.date] = None,
) -> _dt.date:
    """Soonest date >= from_date (default today) falling on ``weekday``.

    Returns from_date itself when it already matches, otherwise 1-6 days ahead.
    """
    if from_date is None:
        from_date = _dt.date.today()
    ahead = (weekday.index - from_date.weekday()) % 7
    return from_date + _dt.timedelta(days=ahead)


def coerce_date(value: object, *, field: str = "date") -> _dt.date:
    """Accept a date, a datetime (time part dropped) or an ISO string.

    "2024-06-03" and "2024-06-03T00:00:00.000Z" both give date(2024, 6, 3).
    """
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if DATE_PATTERN.match(raw):
            try:
                return _dt.date.fromisoformat(raw[:10])
            except ValueError:
                pass
    raise ValidationError(
        "Invalid date. Use YYYY-MM-DD",
        details={"field": field, "value": str(value)},
    )


def coerce_datetime(value: object, *, field: str = "datetime") -> _dt.datetime:
    """Accept a datetime, a date (midnight) or an ISO 8601 string; always timezone-aware.

    Values without an offset, and trailing "Z", are read as UTC.
    """
    parsed: Optional[_dt.datetime] = None
    if isinstance(value, _dt.datetime):
        parsed = value
    elif isinstance(value, _dt.date):
        parsed = _dt.datetime.combine(value, _dt.time())
    elif isinstance(value, str) and DATE_PATTERN.match(value.strip()):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = _dt.datetime.fromisoformat(raw)
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError(
            "Invalid date-time. Use ISO 8601, e.g. 2024-06-03T09:00:00Z",
            details={"field": field, "value": str(value)},
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_dt.timezone.utc)
    return parsed
