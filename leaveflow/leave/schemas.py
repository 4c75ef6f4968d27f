"""Leave Pydantic v2 schemas: leave types and leave requests."""

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BeforeValidator, Field, field_validator, model_validator

from leaveflow.common.constants import (
    DEFAULT_LEAVE_TYPES_BY_ID,
    Applicability,
    LeaveStatus,
)
from leaveflow.common.identifiers import canonical_leave_type_id
from leaveflow.common.schemas import (
    CanonicalId,
    DateOnly,
    Days,
    LeaveTypeId,
    OptionalCanonicalId,
    RecordId,
    WireModel,
    lower_text,
    upper_text,
)

Status = Annotated[LeaveStatus, BeforeValidator(upper_text)]
ApplicableTo = Annotated[Applicability, BeforeValidator(lower_text)]


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════

_TYPE_ID_KEYS = ("id", "leave_type_id", "leaveTypeId")
_TYPE_FIELD_KEYS = {
    "label": ("label", "name", "leave_type_name", "leaveTypeName"),
    "applicable_to": ("applicableTo", "applicable_to", "applicable"),
    "default_quota": ("defaultQuota", "default_quota"),
    "order": ("order",),
}


class LeaveTypeOut(WireModel):
    """Leave category; fields a backend omits are filled from the standard set."""

    id: LeaveTypeId = Field(validation_alias=AliasChoices(*_TYPE_ID_KEYS))
    label: str = Field(default="", validation_alias=AliasChoices(*_TYPE_FIELD_KEYS["label"]))
    applicable_to: ApplicableTo = Field(
        default=Applicability.both,
        validation_alias=AliasChoices(*_TYPE_FIELD_KEYS["applicable_to"]),
    )
    default_quota: Days = Field(
        default=0, validation_alias=AliasChoices(*_TYPE_FIELD_KEYS["default_quota"])
    )
    order: int = 0
    is_active: bool = Field(
        default=True, validation_alias=AliasChoices("isActive", "is_active", "active")
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_from_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_id = next((data[k] for k in _TYPE_ID_KEYS if data.get(k) is not None), None)
        standard = DEFAULT_LEAVE_TYPES_BY_ID.get(canonical_leave_type_id(raw_id))
        if standard is None:
            return data
        filled = dict(data)
        for field, keys in _TYPE_FIELD_KEYS.items():
            if all(filled.get(k) in (None, "") for k in keys):
                filled[field] = standard[field]
        return filled


class LeaveTypeCreate(WireModel):
    """Payload for a new administrator-defined leave type."""

    label: str = Field(..., min_length=1)
    applicable_to: ApplicableTo = Applicability.both
    default_quota: Days = Field(default=0, ge=0)


# ═════════════════════════════════════════════════════════════════════
# Leave Request
# ═════════════════════════════════════════════════════════════════════

_EMPLOYEE_ID = AliasChoices("userId", "user_id", "employeeId", "employee_id")
_EMPLOYEE_NAME = AliasChoices("userName", "user_name", "employeeName", "employee_name")
_LEAVE_TYPE = AliasChoices("type", "leave_type", "leaveType", "leaveTypeId", "leave_type_id")


class LeaveRequestCreate(WireModel):
    """Payload for a new PENDING request, built after all submission checks pass."""

    employee_id: CanonicalId = Field(validation_alias=_EMPLOYEE_ID, serialization_alias="userId")
    employee_name: str = Field(
        default="", validation_alias=_EMPLOYEE_NAME, serialization_alias="userName"
    )
    leave_type_id: LeaveTypeId = Field(validation_alias=_LEAVE_TYPE, serialization_alias="type")
    start_date: DateOnly
    end_date: DateOnly
    reason: str = ""
    status: Status = LeaveStatus.pending


class LeaveRequestOut(WireModel):
    """Canonical leave request record."""

    id: RecordId
    employee_id: CanonicalId = Field(validation_alias=_EMPLOYEE_ID, serialization_alias="userId")
    employee_name: str = Field(
        default="", validation_alias=_EMPLOYEE_NAME, serialization_alias="userName"
    )
    leave_type_id: LeaveTypeId = Field(validation_alias=_LEAVE_TYPE, serialization_alias="type")
    start_date: DateOnly
    end_date: DateOnly
    reason: str = ""
    status: Status = LeaveStatus.pending
    submitted_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("submittedAt", "submitted_at", "createdAt", "created_at"),
    )
    reviewed_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("reviewedAt", "reviewed_at")
    )
    reviewed_by: OptionalCanonicalId = Field(
        default=None, validation_alias=AliasChoices("reviewedBy", "reviewed_by")
    )
    manager_comment: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("managerComment", "manager_comment")
    )

    @field_validator("employee_name", "reason", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_active(self) -> bool:
        return self.status in (LeaveStatus.pending, LeaveStatus.approved)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
