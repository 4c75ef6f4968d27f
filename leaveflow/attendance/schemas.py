"""Attendance Pydantic v2 schemas: holidays and daily attendance records."""

from datetime import time
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from leaveflow.common.constants import LATE_CUTOFF
from leaveflow.common.schemas import CanonicalId, DateOnly, RecordId, TimeOnly, WireModel

_EMPLOYEE_ID = AliasChoices("userId", "user_id", "employeeId", "employee_id")


def is_late_check_in(check_in: Optional[time]) -> bool:
    """A check-in strictly after 09:30:00 is late."""
    return check_in is not None and check_in > LATE_CUTOFF


class HolidayOut(WireModel):
    """One company holiday as stored by a backend."""

    day: DateOnly = Field(validation_alias=AliasChoices("date", "holiday_date", "holidayDate", "day"))
    name: str = Field(
        default="",
        validation_alias=AliasChoices("name", "holiday_name", "holidayName"),
    )


class AttendanceOut(WireModel):
    """One employee's attendance for one day.

    ``is_late`` is always derived from the check-in time. When a backend does not
    report ``penaltyApplied`` the record is assumed penalized exactly when late.
    """

    id: RecordId
    employee_id: CanonicalId = Field(validation_alias=_EMPLOYEE_ID, serialization_alias="userId")
    day: DateOnly = Field(validation_alias=AliasChoices("date", "day"), serialization_alias="date")
    check_in: TimeOnly = Field(default=None, validation_alias=AliasChoices("checkIn", "check_in"))
    check_out: TimeOnly = Field(
        default=None, validation_alias=AliasChoices("checkOut", "check_out")
    )
    is_late: bool = False
    penalty_applied: bool = Field(
        default=False, validation_alias=AliasChoices("penaltyApplied", "penalty_applied")
    )

    @field_validator("penalty_applied", mode="before")
    @classmethod
    def _none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def _derive_lateness(self) -> "AttendanceOut":
        self.is_late = is_late_check_in(self.check_in)
        if "penalty_applied" not in self.model_fields_set:
            self.penalty_applied = self.is_late
        return self


class AttendanceEntry(WireModel):
    """Manual attendance entry written by an administrator."""

    employee_id: CanonicalId = Field(validation_alias=_EMPLOYEE_ID, serialization_alias="userId")
    day: DateOnly = Field(validation_alias=AliasChoices("date", "day"), serialization_alias="date")
    check_in: TimeOnly = Field(default=None, validation_alias=AliasChoices("checkIn", "check_in"))
    check_out: TimeOnly = Field(
        default=None, validation_alias=AliasChoices("checkOut", "check_out")
    )
