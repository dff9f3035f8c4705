"""
careops.config.scheduling – knobs for the scheduling engine.

Env vars: SCHEDULE_DEFAULT_PAGE_LIMIT, SCHEDULE_MAX_PAGE_LIMIT,
SCHEDULE_STRICT_STATUS_TRANSITIONS, SCHEDULE_LOCK_WORKER_DAY.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from careops.core.exceptions import ConfigurationError


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes")


@dataclass(frozen=True)
class SchedulingConfig:
    """Pagination limits and invariant enforcement switches."""

    default_page_limit: int = 100
    max_page_limit: int = 500

    strict_status_transitions: bool = True
    """Reject PENDING→COMPLETED, CANCELLED→CONFIRMED, ... on update."""

    lock_worker_day: bool = True
    """Serialize create/update per (worker, date) with an advisory lock."""

    def __post_init__(self) -> None:
        if self.default_page_limit < 1:
            raise ConfigurationError(
                f"default_page_limit must be >= 1, got {self.default_page_limit!r}"
            )
        if self.max_page_limit < self.default_page_limit:
            raise ConfigurationError(
                "max_page_limit must be >= default_page_limit "
                f"({self.max_page_limit!r} < {self.default_page_limit!r})"
            )

    @classmethod
    def from_env(cls) -> SchedulingConfig:
        try:
            default_limit = int(os.environ.get("SCHEDULE_DEFAULT_PAGE_LIMIT", "100"))
            max_limit = int(os.environ.get("SCHEDULE_MAX_PAGE_LIMIT", "500"))
        except ValueError as exc:
            raise ConfigurationError("Page limits must be integers", cause=exc) from exc
        return cls(
            default_page_limit=default_limit,
            max_page_limit=max_limit,
            strict_status_transitions=_env_flag("SCHEDULE_STRICT_STATUS_TRANSITIONS", True),
            lock_worker_day=_env_flag("SCHEDULE_LOCK_WORKER_DAY", True),
        )


def load_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig.from_env()
