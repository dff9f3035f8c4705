"""Half-open interval arithmetic on "HH:mm" windows."""
from __future__ import annotations

from typing import Iterable, Optional, Protocol, TypeVar

from careops.scheduling.time_utils import to_minutes


class HasWindow(Protocol):
    start_time: str
    end_time: str


W = TypeVar("W", bound=HasWindow)


def windows_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """[start_a, end_a) ∩ [start_b, end_b) ≠ ∅.

    Windows that only touch at a boundary (10:00 end vs 10:00 start) do not
    overlap.
    """
    return to_minutes(start_b) < to_minutes(end_a) and to_minutes(end_b) > to_minutes(start_a)


def first_overlap(start: str, end: str, existing: Iterable[W]) -> Optional[W]:
    """Return the earliest-starting item of ``existing`` that overlaps [start, end)."""
    hits = [e for e in existing if windows_overlap(start, end, e.start_time, e.end_time)]
    if not hits:
        return None
    return min(hits, key=lambda e: to_minutes(e.start_time))
