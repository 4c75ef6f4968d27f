"""Remote storage backend: JSON over HTTP with a bearer credential.

The server wraps payloads inconsistently (bare lists, ``{"data": [...]}``,
``{"users": [...]}``) and mixes camelCase with snake_case; every response is
unwrapped here and validated through the schemas before it leaves this module.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from leaveflow.attendance.schemas import AttendanceEntry, AttendanceOut, HolidayOut
from leaveflow.common.constants import AttendanceEvent, LeaveStatus
from leaveflow.common.exceptions import RemoteBackendError
from leaveflow.common.identifiers import canonical_id, is_iso_date
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut, LeaveTypeOut
from leaveflow.notifications.schemas import NotificationCreate, NotificationOut
from leaveflow.storage.base import BackendStatus, StorageBackend

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_LIST_KEYS = ("data", "records", "users", "leave_requests", "leave_types", "items")


# ── Payload helpers ─────────────────────────────────────────────────

def _to_list(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def _to_record(payload: Any, *keys: str) -> Optional[dict]:
    """The single record in a write response, or None when the server sent none."""
    if not isinstance(payload, dict):
        return None
    for key in ("data", *keys):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return payload if "id" in payload else None


def _error_message(payload: Any, response: httpx.Response) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "msg"):
            if payload.get(key):
                return str(payload[key])
    return f"HTTP {response.status_code}"


def _parse_many(model: type[ModelT], items: list) -> list[ModelT]:
    """Validate each item; malformed rows are logged and skipped."""
    parsed: list[ModelT] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s row: %s", model.__name__, exc.errors()[:1])
    return parsed


def _lower_quota_keys(body: dict) -> dict:
    if isinstance(body.get("quotas"), dict):
        body["quotas"] = {k.lower(): v for k, v in body["quotas"].items()}
    return body


def _holiday_map(payload: Any) -> dict[date, str]:
    """Holidays arrive either as ``{"2026-01-01": "name"}`` or as a list of rows."""
    if isinstance(payload, dict) and not _to_list(payload):
        return {
            date.fromisoformat(key): str(name)
            for key, name in payload.items()
            if is_iso_date(key)
        }
    return {h.day: h.name for h in _parse_many(HolidayOut, _to_list(payload))}


# ═════════════════════════════════════════════════════════════════════
# RemoteBackend
# ═════════════════════════════════════════════════════════════════════


class RemoteBackend(StorageBackend):
    """httpx client for the LeaveFlow HTTP API."""

    name = "remote"

    def __init__(
        self,
        base_url: str,
        *,
        email: str = "",
        password: str = "",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._email = email
        self._password = password
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def init(self) -> None:
        if self._email and self._password:
            await self.login(self._email, self._password)

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise RemoteBackendError(f"Cannot reach backend: {exc}") from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.status_code == 401:
            # Stale or missing credential: forget it so the caller logs in again
            self._token = None
            raise RemoteBackendError(_error_message(payload, response), 401)
        if response.is_error:
            message = _error_message(payload, response)
            logger.warning("%s %s -> %d: %s", method, path, response.status_code, message)
            raise RemoteBackendError(message, response.status_code)
        return payload

    # ── Auth ────────────────────────────────────────────────────────

    async def login(self, email: str, password: str) -> Optional[EmployeeOut]:
        """Obtain a bearer token; returns the logged-in employee when the server sends it."""
        payload = await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise RemoteBackendError("Login response carried no token")
        self._token = token
        user = payload.get("user")
        return EmployeeOut.model_validate(user) if isinstance(user, dict) else None

    def logout(self) -> None:
        self._token = None

    # ── Employees ───────────────────────────────────────────────────

    async def list_employees(self) -> list[EmployeeOut]:
        payload = await self._request("GET", "/api/users")
        return _parse_many(EmployeeOut, _to_list(payload))

    async def _find_employee(self, employee_id: str) -> EmployeeOut:
        wanted = canonical_id(employee_id)
        for emp in await self.list_employees():
            if emp.id == wanted:
                return emp
        raise RemoteBackendError(f"Employee {employee_id} not found", 404)

    async def create_employee(self, payload: EmployeeCreate) -> EmployeeOut:
        body = _lower_quota_keys(payload.to_wire(exclude_none=True))
        response = await self._request("POST", "/api/users", json=body)
        record = _to_record(response, "user")
        if record is None:
            if payload.id is None:
                raise RemoteBackendError("Backend did not return the created employee")
            return await self._find_employee(payload.id)
        return EmployeeOut.model_validate(record)

    async def update_employee(self, employee_id: str, changes: EmployeeUpdate) -> EmployeeOut:
        body = _lower_quota_keys(changes.to_wire(exclude_unset=True))
        emp_id = canonical_id(employee_id)
        response = await self._request("PUT", f"/api/users/{emp_id}", json=body)
        record = _to_record(response, "user")
        if record is None:
            return await self._find_employee(emp_id)
        return EmployeeOut.model_validate(record)

    async def delete_employee(self, employee_id: str) -> None:
        await self._request("DELETE", f"/api/users/{canonical_id(employee_id)}")

    # ── Leave types ─────────────────────────────────────────────────

    async def list_leave_types(self) -> list[LeaveTypeOut]:
        payload = await self._request("GET", "/api/leave-types")
        return _parse_many(LeaveTypeOut, _to_list(payload))

    async def replace_leave_types(self, leave_types: list[LeaveTypeOut]) -> None:
        await self._request(
            "PUT", "/api/leave-types", json=[lt.to_wire() for lt in leave_types]
        )

    # ── Leave requests ──────────────────────────────────────────────

    async def list_leave_requests(
        self, employee_id: Optional[str] = None
    ) -> list[LeaveRequestOut]:
        params = {"userId": canonical_id(employee_id)} if employee_id is not None else None
        payload = await self._request("GET", "/api/leave-requests", params=params)
        return _parse_many(LeaveRequestOut, _to_list(payload))

    async def create_leave_request(self, payload: LeaveRequestCreate) -> LeaveRequestOut:
        response = await self._request("POST", "/api/leave-requests", json=payload.to_wire())
        record = _to_record(response, "leave_request", "request")
        if record is None:
            raise RemoteBackendError("Backend did not return the created leave request")
        return LeaveRequestOut.model_validate(record)

    async def update_leave_request_status(
        self,
        request_id: str,
        status: LeaveStatus,
        comment: Optional[str],
        actor_id: str,
    ) -> LeaveRequestOut:
        body = {
            "status": status.value,
            "managerComment": comment,
            "managerId": canonical_id(actor_id),
        }
        response = await self._request(
            "PATCH", f"/api/leave-requests/{request_id}/status", json=body
        )
        record = _to_record(response, "leave_request", "request")
        if record is not None:
            return LeaveRequestOut.model_validate(record)
        for req in await self.list_leave_requests():
            if req.id == str(request_id):
                return req
        raise RemoteBackendError(f"Leave request {request_id} not found", 404)

    # ── Holidays ────────────────────────────────────────────────────

    async def get_holidays(self) -> dict[date, str]:
        return _holiday_map(await self._request("GET", "/api/holidays"))

    async def save_holiday(self, day: date, name: str) -> None:
        await self._request(
            "POST", "/api/holidays", json={"date": day.isoformat(), "name": name}
        )

    async def delete_holiday(self, day: date) -> None:
        await self._request("DELETE", f"/api/holidays/{day.isoformat()}")

    # ── Attendance ──────────────────────────────────────────────────

    async def list_attendance(self, employee_id: str) -> list[AttendanceOut]:
        payload = await self._request(
            "GET", "/api/attendance", params={"userId": canonical_id(employee_id)}
        )
        return _parse_many(AttendanceOut, _to_list(payload))

    async def record_attendance(
        self,
        employee_id: str,
        kind: AttendanceEvent,
        moment: datetime,
        penalty_applied: bool = False,
    ) -> AttendanceOut:
        body = {
            "userId": canonical_id(employee_id),
            "type": kind.value,
            "timestamp": moment.isoformat(),
            "penaltyApplied": penalty_applied,
        }
        response = await self._request("POST", "/api/attendance", json=body)
        record = _to_record(response, "record")
        if record is None:
            raise RemoteBackendError("Backend did not return the attendance record")
        return AttendanceOut.model_validate(record)

    async def save_attendance(self, entry: AttendanceEntry) -> AttendanceOut:
        response = await self._request("POST", "/api/attendance", json=entry.to_wire())
        record = _to_record(response, "record")
        if record is None:
            raise RemoteBackendError("Backend did not return the attendance record")
        return AttendanceOut.model_validate(record)

    # ── Notifications ───────────────────────────────────────────────

    async def list_notifications(self, employee_id: str) -> list[NotificationOut]:
        payload = await self._request(
            "GET", "/api/notifications", params={"userId": canonical_id(employee_id)}
        )
        return _parse_many(NotificationOut, _to_list(payload))

    async def create_notification(self, payload: NotificationCreate) -> NotificationOut:
        response = await self._request("POST", "/api/notifications", json=payload.to_wire())
        record = _to_record(response, "notification")
        if record is None:
            raise RemoteBackendError("Backend did not return the notification")
        return NotificationOut.model_validate(record)

    async def mark_notification_read(self, notification_id: str, employee_id: str) -> bool:
        try:
            await self._request(
                "PATCH",
                f"/api/notifications/{notification_id}/read",
                params={"userId": canonical_id(employee_id)},
            )
        except RemoteBackendError as exc:
            if exc.status_code in (403, 404):
                return False
            raise
        return True

    # ── Status ──────────────────────────────────────────────────────

    async def status(self) -> BackendStatus:
        try:
            payload = await self._request("GET", "/api/status")
        except RemoteBackendError as exc:
            return BackendStatus(server="unreachable", database="unknown", message=str(exc))
        payload = payload if isinstance(payload, dict) else {}
        return BackendStatus(
            server=str(payload.get("server", "ok")),
            database=str(payload.get("database", "unknown")),
            message=str(payload.get("message", "")),
        )
