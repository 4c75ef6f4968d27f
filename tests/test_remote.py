"""Remote backend tests against an ``httpx.MockTransport`` server.

Covers bearer-credential handling, response unwrapping, wire-format
normalization and error translation.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import httpx
import pytest

from leaveflow.common.constants import AttendanceEvent, GenderType, LeaveStatus, UserRole
from leaveflow.common.exceptions import RemoteBackendError
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeUpdate
from leaveflow.leave.schemas import LeaveRequestCreate
from leaveflow.storage import RemoteBackend

BASE_URL = "http://leaveflow.test"


class FakeServer:
    """Records every request and answers from a route table."""

    def __init__(self, routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        return handler(request)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def _json(payload, status: int = 200):
    return lambda request: httpx.Response(status, json=payload)


def _backend(server: FakeServer, **kwargs) -> RemoteBackend:
    return RemoteBackend(BASE_URL, transport=httpx.MockTransport(server), **kwargs)


LOGIN = {
    ("POST", "/api/auth/login"): _json({"token": "tok-1", "user": {"id": 1, "name": "Admin"}}),
}


# ═════════════════════════════════════════════════════════════════════
# 1. Credential handling
# ═════════════════════════════════════════════════════════════════════


class TestAuth:
    """Tests for login, bearer header and 401 handling."""

    async def test_login_sets_bearer_header(self):
        server = FakeServer({**LOGIN, ("GET", "/api/users"): _json([])})
        backend = _backend(server)

        user = await backend.login("admin@leaveflow.test", "secret")
        await backend.list_employees()

        assert user.id == "001"
        assert backend.token == "tok-1"
        assert server.requests[-1].headers["Authorization"] == "Bearer tok-1"
        await backend.close()

    async def test_init_logs_in_with_configured_credentials(self):
        server = FakeServer(dict(LOGIN))
        backend = _backend(server, email="a@b.c", password="pw")
        await backend.init()
        assert server.last_json() == {"email": "a@b.c", "password": "pw"}
        assert backend.token == "tok-1"
        await backend.close()

    async def test_login_without_token_fails(self):
        server = FakeServer({("POST", "/api/auth/login"): _json({"user": None})})
        backend = _backend(server)
        with pytest.raises(RemoteBackendError):
            await backend.login("a@b.c", "pw")
        assert backend.token is None
        await backend.close()

    async def test_unauthorized_clears_token(self):
        server = FakeServer({
            **LOGIN,
            ("GET", "/api/users"): _json({"error": "Token expired"}, 401),
        })
        backend = _backend(server)
        await backend.login("a@b.c", "pw")

        with pytest.raises(RemoteBackendError) as info:
            await backend.list_employees()

        assert info.value.status_code == 401
        assert str(info.value) == "Token expired"
        assert backend.token is None
        await backend.close()

    async def test_no_header_without_token(self):
        server = FakeServer({("GET", "/api/users"): _json([])})
        backend = _backend(server)
        await backend.list_employees()
        assert "Authorization" not in server.requests[-1].headers
        await backend.close()


# ═════════════════════════════════════════════════════════════════════
# 2. Reads: unwrapping and normalization
# ═════════════════════════════════════════════════════════════════════


class TestReads:

    async def test_employees_unwrapped_and_canonical(self):
        server = FakeServer({("GET", "/api/users"): _json({"users": [
            {"id": 4, "name": "Dana", "role": "manager", "gender": "female",
             "managerId": "2", "quotas": {"vacation": 12}},
            {"id": 2, "name": "Mina", "role": "ADMIN"},
        ]})})
        backend = _backend(server)

        employees = await backend.list_employees()

        assert [e.id for e in employees] == ["004", "002"]
        assert employees[0].role is UserRole.manager
        assert employees[0].gender is GenderType.female
        assert employees[0].manager_id == "002"
        assert employees[0].quotas == {"VACATION": Decimal("12")}
        await backend.close()

    async def test_malformed_rows_skipped(self):
        server = FakeServer({("GET", "/api/leave-requests"): _json({"data": [
            {"id": 1, "userId": 3, "type": "sick",
             "startDate": "2026-10-12T00:00:00.000Z", "endDate": "2026-10-14T00:00:00.000Z",
             "status": "pending"},
            {"id": 2, "userId": 3, "type": "sick", "startDate": "not a date",
             "endDate": "2026-10-14"},
        ]})})
        backend = _backend(server)

        requests = await backend.list_leave_requests()

        assert len(requests) == 1
        assert requests[0].employee_id == "003"
        assert requests[0].leave_type_id == "SICK"
        assert requests[0].start_date == date(2026, 10, 12)
        await backend.close()

    async def test_request_filter_uses_canonical_id(self):
        server = FakeServer({("GET", "/api/leave-requests"): _json([])})
        backend = _backend(server)
        await backend.list_leave_requests(4)
        assert server.requests[-1].url.params["userId"] == "004"
        await backend.close()

    async def test_leave_types_filled_from_defaults(self):
        server = FakeServer({("GET", "/api/leave-types"): _json({"leave_types": [
            {"leave_type_id": "sick", "leave_type_name": "Sick"},
            {"id": "LT1", "name": "Study", "defaultQuota": 5, "order": 10},
        ]})})
        backend = _backend(server)

        types = await backend.list_leave_types()

        assert [lt.id for lt in types] == ["SICK", "LT1"]
        assert types[0].label == "Sick"
        assert types[0].default_quota == Decimal("30")
        assert types[1].default_quota == Decimal("5")
        await backend.close()

    async def test_holidays_as_object_map(self):
        server = FakeServer({("GET", "/api/holidays"): _json({
            "2026-12-25": "Christmas", "note": "ignored",
        })})
        backend = _backend(server)
        assert await backend.get_holidays() == {date(2026, 12, 25): "Christmas"}
        await backend.close()

    async def test_holidays_as_row_list(self):
        server = FakeServer({("GET", "/api/holidays"): _json({"data": [
            {"holiday_date": "2026-12-25T00:00:00.000Z", "holiday_name": "Christmas"},
        ]})})
        backend = _backend(server)
        assert await backend.get_holidays() == {date(2026, 12, 25): "Christmas"}
        await backend.close()

    async def test_attendance_lateness_derived(self):
        server = FakeServer({("GET", "/api/attendance"): _json({"records": [
            {"id": 7, "userId": 3, "date": "2026-10-19", "checkIn": "09:31:00"},
        ]})})
        backend = _backend(server)

        records = await backend.list_attendance("3")

        assert records[0].is_late
        assert records[0].penalty_applied
        assert server.requests[-1].url.params["userId"] == "003"
        await backend.close()


# ═════════════════════════════════════════════════════════════════════
# 3. Writes
# ═════════════════════════════════════════════════════════════════════


class TestWrites:
    """Tests for request bodies sent by write operations."""

    async def test_create_employee_lowercases_quota_keys(self):
        server = FakeServer({("POST", "/api/users"): _json(
            {"data": {"id": 6, "name": "New", "quotas": {"sick": 30}}}, 201,
        )})
        backend = _backend(server)

        created = await backend.create_employee(
            EmployeeCreate(name="New", quotas={"SICK": Decimal("30")})
        )

        body = server.last_json()
        assert body["quotas"] == {"sick": 30.0}
        assert "id" not in body
        assert created.id == "006"
        await backend.close()

    async def test_update_sends_only_set_fields(self):
        server = FakeServer({("PUT", "/api/users/004"): _json({"id": 4, "managerId": 2})})
        backend = _backend(server)

        updated = await backend.update_employee("4", EmployeeUpdate(manager_id="2"))

        assert server.last_json() == {"managerId": "002"}
        assert updated.manager_id == "002"
        await backend.close()

    async def test_status_patch_body(self):
        server = FakeServer({("PATCH", "/api/leave-requests/17/status"): _json({
            "id": 17, "userId": 3, "type": "VACATION",
            "startDate": "2026-11-02", "endDate": "2026-11-04", "status": "APPROVED",
        })})
        backend = _backend(server)

        result = await backend.update_leave_request_status(
            "17", LeaveStatus.approved, "ok", "2"
        )

        assert server.last_json() == {
            "status": "APPROVED", "managerComment": "ok", "managerId": "002",
        }
        assert result.status is LeaveStatus.approved
        await backend.close()

    async def test_record_attendance_body(self):
        server = FakeServer({("POST", "/api/attendance"): _json({"record": {
            "id": 9, "userId": 3, "date": "2026-10-19", "checkIn": "09:45:00",
            "penaltyApplied": True,
        }})})
        backend = _backend(server)

        record = await backend.record_attendance(
            "3", AttendanceEvent.check_in, datetime(2026, 10, 19, 9, 45), penalty_applied=True
        )

        assert server.last_json() == {
            "userId": "003", "type": "IN",
            "timestamp": "2026-10-19T09:45:00", "penaltyApplied": True,
        }
        assert record.penalty_applied
        await backend.close()

    async def test_missing_created_record_is_error(self):
        server = FakeServer({("POST", "/api/leave-requests"): _json({"ok": True})})
        backend = _backend(server)

        with pytest.raises(RemoteBackendError):
            await backend.create_leave_request(LeaveRequestCreate(
                employee_id="3", leave_type_id="SICK",
                start_date=date(2026, 10, 12), end_date=date(2026, 10, 12),
            ))
        await backend.close()


# ═════════════════════════════════════════════════════════════════════
# 4. Errors and status
# ═════════════════════════════════════════════════════════════════════


class TestErrors:

    async def test_error_message_from_body(self):
        server = FakeServer({("GET", "/api/users"): _json({"message": "Database locked"}, 500)})
        backend = _backend(server)
        with pytest.raises(RemoteBackendError) as info:
            await backend.list_employees()
        assert str(info.value) == "Database locked"
        assert info.value.status_code == 500
        await backend.close()

    async def test_error_without_body(self):
        server = FakeServer({("GET", "/api/users"): lambda r: httpx.Response(502)})
        backend = _backend(server)
        with pytest.raises(RemoteBackendError, match="HTTP 502"):
            await backend.list_employees()
        await backend.close()

    async def test_connection_error_translated(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = RemoteBackend(BASE_URL, transport=httpx.MockTransport(refuse))
        with pytest.raises(RemoteBackendError, match="Cannot reach backend"):
            await backend.get_holidays()
        await backend.close()

    async def test_status_reports_unreachable(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = RemoteBackend(BASE_URL, transport=httpx.MockTransport(refuse))
        status = await backend.status()
        assert status.server == "unreachable"
        assert not status.healthy
        await backend.close()

    async def test_status_healthy(self):
        server = FakeServer({("GET", "/api/status"): _json(
            {"server": "ok", "database": "connected", "message": "sqlite"},
        )})
        backend = _backend(server)
        status = await backend.status()
        assert status.healthy
        await backend.close()

    @pytest.mark.parametrize("code", [403, 404])
    async def test_mark_read_refused_returns_false(self, code):
        server = FakeServer({("PATCH", "/api/notifications/n1/read"): _json({"error": "no"}, code)})
        backend = _backend(server)
        assert await backend.mark_notification_read("n1", "3") is False
        assert server.requests[-1].url.params["userId"] == "003"
        await backend.close()

    async def test_mark_read_server_error_raises(self):
        server = FakeServer({("PATCH", "/api/notifications/n1/read"): _json({}, 500)})
        backend = _backend(server)
        with pytest.raises(RemoteBackendError):
            await backend.mark_notification_read("n1", "3")
        await backend.close()
