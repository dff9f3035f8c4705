"""
careops exception system.

Usage:
    from careops.core.exceptions import ConflictError, ValidationError

    raise ValidationError("Missing required fields", details={"missing": ["worker_id"]})
    raise ConflictError("Scheduling conflict detected", details={"appointment_id": str(other.id)})

The API maps every ProjectError to a JSON body {"error": {...}} carrying its
http_status, so callers can tell a conflict from a missing field or a bad id.
"""
from careops.core.exceptions.base import ProjectError, exception_factory
from careops.core.exceptions.errors import (
    ConfigurationError,
    ConflictError,
    InvalidTimeFormatError,
    InvalidVisitError,
    NotFoundError,
    NoValidVisitsError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "exception_factory",
    "ConfigurationError",
    "ValidationError",
    "InvalidTimeFormatError",
    "NotFoundError",
    "UnauthorizedError",
    "ConflictError",
    "InvalidVisitError",
    "NoValidVisitsError",
]
