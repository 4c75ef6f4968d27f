"""Shared test fixtures: in-memory embedded store, seeded org, factories.

Uses SQLite + aiosqlite in memory (StaticPool) so every test gets an isolated,
freshly seeded store.

Org chart used by most tests::

    001 Admin (ADMIN)
     └── 002 Manager (MANAGER)
          ├── 003 Team Lead (MANAGER)
          │    └── 005 Engineer (EMPLOYEE)
          └── 004 Designer (EMPLOYEE, female, joined 6 months ago)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest

from leaveflow.cache import SynchronizedCache
from leaveflow.common.constants import GenderType, LeaveStatus, UserRole
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut
from leaveflow.storage import EmbeddedBackend

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Monday; every test that depends on "today" passes it explicitly
TODAY = date(2026, 10, 19)


# ── Factories ───────────────────────────────────────────────────────

def _make_employee(
    *,
    id: str,
    name: str,
    role: UserRole = UserRole.employee,
    gender: GenderType = GenderType.male,
    manager_id: Optional[str] = None,
    join_date: date = date(2022, 3, 1),
    quotas: Optional[dict[str, Decimal]] = None,
    department: str = "Engineering",
) -> EmployeeCreate:
    return EmployeeCreate(
        id=id,
        name=name,
        email=f"{name.lower().replace(' ', '.')}@leaveflow.test",
        role=role,
        gender=gender,
        department=department,
        join_date=join_date,
        manager_id=manager_id,
        quotas=quotas or {},
    )


def _make_employee_out(
    id: str,
    manager_id: Optional[str] = None,
    *,
    role: UserRole = UserRole.employee,
    gender: GenderType = GenderType.male,
    join_date: Optional[date] = date(2022, 3, 1),
    quotas: Optional[dict] = None,
) -> EmployeeOut:
    return EmployeeOut(
        id=id,
        name=f"Employee {id}",
        role=role,
        gender=gender,
        join_date=join_date,
        manager_id=manager_id,
        quotas=quotas or {},
    )


def _make_request(
    id: str,
    employee_id: str,
    leave_type_id: str,
    start: date,
    end: date,
    status: LeaveStatus = LeaveStatus.pending,
) -> LeaveRequestOut:
    return LeaveRequestOut(
        id=id,
        employee_id=employee_id,
        employee_name=f"Employee {employee_id}",
        leave_type_id=leave_type_id,
        start_date=start,
        end_date=end,
        status=status,
    )


ORG: tuple[EmployeeCreate, ...] = (
    _make_employee(id="001", name="Admin One", role=UserRole.admin, department="HR",
                   join_date=date(2020, 1, 6)),
    _make_employee(id="002", name="Mina Manager", role=UserRole.manager, manager_id="001",
                   join_date=date(2021, 5, 3)),
    _make_employee(id="003", name="Team Lead", role=UserRole.manager, manager_id="002"),
    _make_employee(id="004", name="Dana Designer", gender=GenderType.female,
                   manager_id="002", join_date=date(2026, 4, 20), department="Design"),
    _make_employee(id="005", name="Eli Engineer", manager_id="003",
                   join_date=date(2023, 8, 14)),
)


async def seed_org(store: EmbeddedBackend) -> None:
    for emp in ORG:
        await store.create_employee(emp)


async def add_request(
    cache: SynchronizedCache,
    *,
    employee_id: str,
    leave_type_id: str,
    start: date,
    end: date,
    status: LeaveStatus = LeaveStatus.pending,
    actor_id: str = "001",
) -> LeaveRequestOut:
    """Write a request straight to the backend, bypassing submission checks."""
    emp = cache.get_employee(employee_id)
    created = await cache.backend.create_leave_request(
        LeaveRequestCreate(
            employee_id=employee_id,
            employee_name=emp.name if emp else "",
            leave_type_id=leave_type_id,
            start_date=start,
            end_date=end,
        )
    )
    if status is not LeaveStatus.pending:
        await cache.backend.update_leave_request_status(created.id, status, None, actor_id)
    await cache.refresh_leave_requests()
    return cache.get_leave_request(created.id)


# ── Embedded store ──────────────────────────────────────────────────

@pytest.fixture
async def backend() -> AsyncGenerator[EmbeddedBackend, None]:
    """Fresh in-memory store with default leave types and holidays seeded."""
    store = EmbeddedBackend(TEST_DATABASE_URL)
    await store.init()
    yield store
    await store.close()


@pytest.fixture
async def cache(backend: EmbeddedBackend) -> SynchronizedCache:
    """Cache over the seeded org, fully loaded."""
    await seed_org(backend)
    synced = SynchronizedCache(backend)
    await synced.load_all()
    return synced
