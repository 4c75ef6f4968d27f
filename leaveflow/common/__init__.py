"""Common module: shared enums, exceptions and identifier helpers for LeaveFlow."""

from leaveflow.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DEFAULT_HOLIDAYS,
    DEFAULT_LEAVE_TYPES,
    LATE_CUTOFF,
    LATE_PENALTY_DAYS,
    MAX_HOLIDAY_NAME_LENGTH,
    MAX_MANAGER_COMMENT_LENGTH,
    MAX_REASON_LENGTH,
    REVIEW_OUTCOMES,
    SICK,
    UNLIMITED_QUOTA,
    VACATION,
    Applicability,
    AttendanceEvent,
    GenderType,
    LeaveStatus,
    UserRole,
)
from leaveflow.common.exceptions import (
    AppException,
    BackendUnavailableError,
    ConflictError,
    NotFoundException,
    RemoteBackendError,
    StorageError,
    ValidationException,
)
from leaveflow.common.identifiers import canonical_id, canonical_leave_type_id

__all__ = [
    # Constants / Enums
    "ACTIVE_LEAVE_STATUSES",
    "DEFAULT_HOLIDAYS",
    "DEFAULT_LEAVE_TYPES",
    "LATE_CUTOFF",
    "LATE_PENALTY_DAYS",
    "MAX_HOLIDAY_NAME_LENGTH",
    "MAX_MANAGER_COMMENT_LENGTH",
    "MAX_REASON_LENGTH",
    "REVIEW_OUTCOMES",
    "SICK",
    "UNLIMITED_QUOTA",
    "VACATION",
    "Applicability",
    "AttendanceEvent",
    "GenderType",
    "LeaveStatus",
    "UserRole",
    # Exceptions
    "AppException",
    "BackendUnavailableError",
    "ConflictError",
    "NotFoundException",
    "RemoteBackendError",
    "StorageError",
    "ValidationException",
    # Identifiers
    "canonical_id",
    "canonical_leave_type_id",
]
