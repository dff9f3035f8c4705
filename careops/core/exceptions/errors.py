"""
Built-in exception types for the scheduling engine.
"""
from __future__ import annotations

from careops.core.exceptions.base import ProjectError, exception_factory


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Malformed input: missing required field, bad time format, end <= start."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class InvalidTimeFormatError(ValidationError):
    """A time-of-day string does not match HH:mm (24-hour)."""

    default_code = "INVALID_TIME_FORMAT"


class NotFoundError(ProjectError):
    """Requested appointment or template does not exist."""

    default_code = "NOT_FOUND"
    default_http_status = 404


class UnauthorizedError(ProjectError):
    """Missing or wrong API key."""

    default_code = "UNAUTHORIZED"
    default_http_status = 401


class ConflictError(ProjectError):
    """The requested time window overlaps an existing appointment for the worker."""

    default_code = "CONFLICT"
    default_http_status = 409


class InvalidVisitError(ProjectError):
    """A single template visit cannot be materialized (skipped, not fatal)."""

    default_code = "INVALID_VISIT"
    default_http_status = 422


NoValidVisitsError = exception_factory(
    "NoValidVisitsError",
    code="NO_VALID_VISITS",
    http_status=422,
)
NoValidVisitsError.__doc__ = "Template has no visit with a usable day, time window and worker."
