"""Custom exception hierarchy for the leave engine and its storage backends.

Fields mirror RFC 7807 Problem Details so a caller exposing the engine over
HTTP can turn any ``AppException`` into a problem body without translation.
"""

from __future__ import annotations

from typing import Any, Optional

BASE_ERROR_URI = "https://leaveflow.local/errors"


# ── Engine exceptions ───────────────────────────────────────────────

class AppException(Exception):
    """Base for all engine exceptions; ``str(exc)`` is the human-readable reason."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)

    def to_problem(self, instance: str = "") -> dict[str, Any]:
        """Build an RFC 7807 body for this exception."""
        body: dict[str, Any] = {
            "type": f"{BASE_ERROR_URI}/{self.error_type}",
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if instance:
            body["instance"] = instance
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundException(AppException):
    """404: entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409: the request collides with existing state (overlap, quota)."""

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=detail,
            errors={field: [detail]},
        )


class ValidationException(AppException):
    """422: business-rule validation failure, raised before any state change."""

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail=detail,
            errors={field: [detail]},
        )


class BackendUnavailableError(AppException):
    """503: a storage backend call failed; cached state was left untouched."""

    def __init__(
        self,
        detail: str = "The backend could not be reached. Please try again.",
    ) -> None:
        super().__init__(
            status_code=503,
            error_type="backend-unavailable",
            title="Backend Unavailable",
            detail=detail,
        )


# ── Storage exceptions ──────────────────────────────────────────────

class StorageError(Exception):
    """Raised by a storage backend when a read or write cannot be completed."""


class RemoteBackendError(StorageError):
    """The remote backend answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
