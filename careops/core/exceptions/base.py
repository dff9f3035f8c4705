"""
Base exception types for careops.

Every error the scheduling engine raises to a caller derives from
ProjectError. Each carries a machine-readable code and an HTTP status so the
API layer can render a structured response without inspecting the type.
"""
from __future__ import annotations

import traceback
from typing import Any, Optional, Type


class ProjectError(Exception):
    """
    Base exception for all careops errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable slug, the class ``default_code`` unless overridden.
        http_status: Status the API answers with, the class ``default_http_status``
            unless overridden.
        details: Extra context, e.g. the field that failed validation or the
            appointment that caused a conflict. Always a dict.
        cause: Underlying exception, logged but never sent to API callers.
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or type(self).default_code
        self.http_status = http_status or type(self).default_http_status
        self.details: dict[str, Any] = dict(details or {})
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r}, http_status={self.http_status})"

    def __str__(self) -> str:
        return self.message

    def with_details(self, **extra: Any) -> "ProjectError":
        """Add context while the error propagates, e.g. which template visit failed."""
        self.details.update(extra)
        return self

    def public_dict(self) -> dict[str, Any]:
        """Body of the API error response: message, code and details when present."""
        body: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body

    def to_dict(self) -> dict[str, Any]:
        """public_dict() plus status and the cause with its traceback, for logs."""
        record = {**self.public_dict(), "http_status": self.http_status}
        if self.cause is not None:
            record["cause"] = str(self.cause)
            record["cause_traceback"] = traceback.format_exception(
                type(self.cause), self.cause, self.cause.__traceback__
            )
        return record


def exception_factory(
    name: str,
    *,
    code: Optional[str] = None,
    http_status: int = 500,
    base: Type[ProjectError] = ProjectError,
) -> Type[ProjectError]:
    """
    Create a ProjectError subclass without a class statement.

    The code defaults to the upper-cased name with spaces as underscores:

        NoValidVisitsError = exception_factory(
            "NoValidVisitsError", code="NO_VALID_VISITS", http_status=422
        )
        raise NoValidVisitsError("Template has no usable visits")
    """
    return type(
        name,
        (base,),
        {
            "default_code": code or name.upper().replace(" ", "_"),
            "default_http_status": http_status,
        },
    )
