"""Notification Pydantic v2 schemas."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from leaveflow.common.schemas import CanonicalId, RecordId, WireModel

_RECIPIENT = AliasChoices("userId", "user_id", "employeeId", "employee_id")


class NotificationOut(WireModel):
    id: RecordId
    employee_id: CanonicalId = Field(validation_alias=_RECIPIENT, serialization_alias="userId")
    title: str = ""
    message: str = ""
    is_read: bool = Field(default=False, validation_alias=AliasChoices("isRead", "is_read", "read"))
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )


class NotificationCreate(WireModel):
    employee_id: CanonicalId = Field(validation_alias=_RECIPIENT, serialization_alias="userId")
    title: str = Field(..., min_length=1)
    message: str = ""
