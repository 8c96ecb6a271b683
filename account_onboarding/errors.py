"""Service error taxonomy.

Every failure raised by the service layer is a :class:`ServiceError` tagged with
an :class:`ErrorKind`. ``user_message`` is the only text that may be shown to an
end user; anything else stays in ``str(exc)`` and the logs.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    VALIDATION_FAILED = "validation_failed"
    INTERNAL = "internal"


HTTP_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.INTERNAL: 500,
}


class ServiceError(Exception):
    """Base class for tagged service failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        user_message: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.user_message = user_message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(ServiceError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class ValidationFailedError(ServiceError):
    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, *, errors: list | None = None, **kwargs) -> None:
        kwargs.setdefault("user_message", message)
        super().__init__(message, **kwargs)
        self.errors = errors or []


class InternalError(ServiceError):
    kind = ErrorKind.INTERNAL


def safe_message(exc: BaseException) -> str | None:
    """Return the user-facing message carried by ``exc``, if any."""
    if isinstance(exc, ServiceError):
        return exc.user_message
    return None


__all__ = [
    "ErrorKind",
    "ServiceError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "ValidationFailedError",
    "InternalError",
    "safe_message",
]
