"""Storage backend contract shared by the embedded and remote implementations.

Every method is a coroutine. Reads return canonical schema objects; writes
return the record as stored. Failures raise :class:`StorageError`.
"""

from __future__ import annotations

import abc
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from leaveflow.attendance.schemas import AttendanceEntry, AttendanceOut
from leaveflow.common.constants import AttendanceEvent, LeaveStatus
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut, LeaveTypeOut
from leaveflow.notifications.schemas import NotificationCreate, NotificationOut


class BackendStatus(BaseModel):
    """Reachability report of a backend and its database."""

    server: str
    database: str
    message: str = ""

    @property
    def healthy(self) -> bool:
        return self.server in ("ok", "embedded") and self.database == "connected"


class StorageBackend(abc.ABC):
    """Persistence seam for employees, leave, holidays, attendance and notifications."""

    name: str = "backend"

    async def init(self) -> None:
        """Prepare the backend (create tables, log in); called once before use."""

    async def close(self) -> None:
        """Release connections."""

    # ── Employees ───────────────────────────────────────────────────

    @abc.abstractmethod
    async def list_employees(self) -> list[EmployeeOut]: ...

    @abc.abstractmethod
    async def create_employee(self, payload: EmployeeCreate) -> EmployeeOut: ...

    @abc.abstractmethod
    async def update_employee(self, employee_id: str, changes: EmployeeUpdate) -> EmployeeOut: ...

    @abc.abstractmethod
    async def delete_employee(self, employee_id: str) -> None: ...

    # ── Leave types ─────────────────────────────────────────────────

    @abc.abstractmethod
    async def list_leave_types(self) -> list[LeaveTypeOut]: ...

    @abc.abstractmethod
    async def replace_leave_types(self, leave_types: list[LeaveTypeOut]) -> None: ...

    # ── Leave requests ──────────────────────────────────────────────

    @abc.abstractmethod
    async def list_leave_requests(
        self, employee_id: Optional[str] = None
    ) -> list[LeaveRequestOut]: ...

    @abc.abstractmethod
    async def create_leave_request(self, payload: LeaveRequestCreate) -> LeaveRequestOut: ...

    @abc.abstractmethod
    async def update_leave_request_status(
        self,
        request_id: str,
        status: LeaveStatus,
        comment: Optional[str],
        actor_id: str,
    ) -> LeaveRequestOut: ...

    # ── Holidays ────────────────────────────────────────────────────

    @abc.abstractmethod
    async def get_holidays(self) -> dict[date, str]: ...

    @abc.abstractmethod
    async def save_holiday(self, day: date, name: str) -> None: ...

    @abc.abstractmethod
    async def delete_holiday(self, day: date) -> None: ...

    # ── Attendance ──────────────────────────────────────────────────

    @abc.abstractmethod
    async def list_attendance(self, employee_id: str) -> list[AttendanceOut]: ...

    @abc.abstractmethod
    async def record_attendance(
        self,
        employee_id: str,
        kind: AttendanceEvent,
        moment: datetime,
        penalty_applied: bool = False,
    ) -> AttendanceOut: ...

    @abc.abstractmethod
    async def save_attendance(self, entry: AttendanceEntry) -> AttendanceOut: ...

    # ── Notifications ───────────────────────────────────────────────

    @abc.abstractmethod
    async def list_notifications(self, employee_id: str) -> list[NotificationOut]: ...

    @abc.abstractmethod
    async def create_notification(self, payload: NotificationCreate) -> NotificationOut: ...

    @abc.abstractmethod
    async def mark_notification_read(self, notification_id: str, employee_id: str) -> bool: ...

    # ── Status ──────────────────────────────────────────────────────

    @abc.abstractmethod
    async def status(self) -> BackendStatus: ...
