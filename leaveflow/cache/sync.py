"""Synchronized cache: the single owner of the in-memory snapshots.

Reads are served from snapshots. Every mutation writes to the storage backend
first and then replaces the whole snapshot of that entity type from a fresh
read. Reloads never raise: a failed fetch keeps the previous snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Awaitable, Optional, TypeVar

from leaveflow.attendance.schemas import AttendanceEntry, AttendanceOut
from leaveflow.common.constants import (
    DEFAULT_LEAVE_TYPES,
    MAX_HOLIDAY_NAME_LENGTH,
    AttendanceEvent,
    LeaveStatus,
)
from leaveflow.common.exceptions import (
    BackendUnavailableError,
    StorageError,
    ValidationException,
)
from leaveflow.common.identifiers import canonical_id, canonical_leave_type_id
from leaveflow.core_hr.hierarchy import descendants_of
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut, LeaveTypeOut
from leaveflow.notifications.schemas import NotificationCreate, NotificationOut
from leaveflow.storage.base import BackendStatus, StorageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYNC_SOURCES = ("employees", "leave_types", "leave_requests", "holidays")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def default_leave_types() -> list[LeaveTypeOut]:
    return [LeaveTypeOut.model_validate({**lt, "is_active": True}) for lt in DEFAULT_LEAVE_TYPES]


def normalize_leave_types(items: list[LeaveTypeOut]) -> list[LeaveTypeOut]:
    """Drop duplicate ids (first definition wins); an empty list means the defaults."""
    seen: set[str] = set()
    unique: list[LeaveTypeOut] = []
    for lt in items:
        if not lt.id or lt.id in seen:
            continue
        seen.add(lt.id)
        unique.append(lt)
    if not unique:
        return default_leave_types()
    return sorted(unique, key=lambda lt: lt.order)


def _newest_first(items: list[NotificationOut]) -> list[NotificationOut]:
    def created(n: NotificationOut) -> datetime:
        if n.created_at is None:
            return _EPOCH
        if n.created_at.tzinfo is None:
            return n.created_at.replace(tzinfo=timezone.utc)
        return n.created_at

    return sorted(items, key=created, reverse=True)


@dataclass
class SyncReport:
    """Outcome of :meth:`SynchronizedCache.load_all`; ``failed`` maps source -> error."""

    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def unreachable(self) -> bool:
        return len(self.failed) == len(SYNC_SOURCES)

    @property
    def loaded(self) -> list[str]:
        return [s for s in SYNC_SOURCES if s not in self.failed]


# ═════════════════════════════════════════════════════════════════════
# SynchronizedCache
# ═════════════════════════════════════════════════════════════════════


class SynchronizedCache:
    """Read-through / write-through snapshots over a :class:`StorageBackend`."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._employees: list[EmployeeOut] = []
        self._leave_types: list[LeaveTypeOut] = default_leave_types()
        self._requests: list[LeaveRequestOut] = []
        self._holidays: dict[date, str] = {}
        self._attendance: dict[str, list[AttendanceOut]] = {}
        self._notifications: dict[str, list[NotificationOut]] = {}
        self._scoped_managers: set[str] = set()
        self.backend_unreachable = False
        self.last_sync: Optional[datetime] = None

    # ─────────────────────────────────────────────────────────────────
    # Snapshot reads
    # ─────────────────────────────────────────────────────────────────

    def get_employees(self) -> list[EmployeeOut]:
        return list(self._employees)

    def get_employee(self, employee_id: str) -> Optional[EmployeeOut]:
        key = canonical_id(employee_id)
        return next((e for e in self._employees if e.id == key), None)

    def get_leave_types(self, *, active_only: bool = False) -> list[LeaveTypeOut]:
        if active_only:
            return [lt for lt in self._leave_types if lt.is_active]
        return list(self._leave_types)

    def get_leave_type(self, leave_type_id: str) -> Optional[LeaveTypeOut]:
        key = canonical_leave_type_id(leave_type_id)
        return next((lt for lt in self._leave_types if lt.id == key), None)

    def get_leave_requests(self) -> list[LeaveRequestOut]:
        return list(self._requests)

    def get_leave_request(self, request_id: str) -> Optional[LeaveRequestOut]:
        return next((r for r in self._requests if r.id == str(request_id)), None)

    def get_holidays(self) -> dict[date, str]:
        return dict(self._holidays)

    def get_attendance(self, employee_id: str) -> list[AttendanceOut]:
        return list(self._attendance.get(canonical_id(employee_id), []))

    def get_notifications(self, employee_id: str) -> list[NotificationOut]:
        return list(self._notifications.get(canonical_id(employee_id), []))

    @property
    def scoped_managers(self) -> frozenset[str]:
        return frozenset(self._scoped_managers)

    # ─────────────────────────────────────────────────────────────────
    # Snapshot replacement
    # ─────────────────────────────────────────────────────────────────

    def _apply_employees(self, employees: list[EmployeeOut]) -> None:
        if employees:
            self._employees = employees
        else:
            logger.warning(
                "Backend returned no employees; keeping %d cached", len(self._employees)
            )

    def _apply_leave_types(self, leave_types: list[LeaveTypeOut]) -> None:
        self._leave_types = normalize_leave_types(leave_types)

    def _apply_requests(self, requests: list[LeaveRequestOut]) -> None:
        self._requests = requests

    def _apply_holidays(self, holidays: dict[date, str]) -> None:
        self._holidays = dict(holidays)

    def _merge_requests(self, fetched: list[LeaveRequestOut]) -> None:
        merged = {r.id: r for r in self._requests}
        for req in fetched:
            merged[req.id] = req
        self._requests = list(merged.values())

    # ─────────────────────────────────────────────────────────────────
    # Reloads
    # ─────────────────────────────────────────────────────────────────

    async def load_all(self) -> SyncReport:
        """Fetch employees, leave types, requests and holidays concurrently.

        Each fetch succeeds or fails on its own; only the failed snapshots are
        kept as they were.
        """
        results = await asyncio.gather(
            self.backend.list_employees(),
            self.backend.list_leave_types(),
            self.backend.list_leave_requests(),
            self.backend.get_holidays(),
            return_exceptions=True,
        )
        appliers = (
            self._apply_employees,
            self._apply_leave_types,
            self._apply_requests,
            self._apply_holidays,
        )
        report = SyncReport()
        for source, result, apply in zip(SYNC_SOURCES, results, appliers):
            if isinstance(result, BaseException):
                logger.warning("Loading %s failed: %s", source, result)
                report.failed[source] = str(result) or type(result).__name__
                continue
            apply(result)

        self.backend_unreachable = report.unreachable
        if report.unreachable:
            logger.error("Backend %s unreachable; serving cached snapshots", self.backend.name)
        else:
            self.last_sync = datetime.now(timezone.utc)
        return report

    async def _refresh(self, source: str, fetch: Awaitable[T], apply) -> bool:
        try:
            result = await fetch
        except StorageError as exc:
            logger.warning("Refreshing %s failed: %s", source, exc)
            return False
        apply(result)
        return True

    async def refresh_employees(self) -> bool:
        return await self._refresh("employees", self.backend.list_employees(), self._apply_employees)

    async def refresh_leave_types(self) -> bool:
        return await self._refresh(
            "leave_types", self.backend.list_leave_types(), self._apply_leave_types
        )

    async def refresh_leave_requests(self) -> bool:
        return await self._refresh(
            "leave_requests", self.backend.list_leave_requests(), self._apply_requests
        )

    async def refresh_holidays(self) -> bool:
        return await self._refresh("holidays", self.backend.get_holidays(), self._apply_holidays)

    async def load_requests_for_manager(self, manager_id: str) -> list[LeaveRequestOut]:
        """Fetch the manager's and every descendant's requests and merge them by id.

        An empty hierarchy or any failed per-employee fetch widens to a single
        unscoped fetch. An empty result never clears the snapshot.
        """
        key = canonical_id(manager_id)
        self._scoped_managers.add(key)
        scope = descendants_of(key, self._employees)

        fetched: Optional[list[LeaveRequestOut]] = None
        if scope:
            ids = [key, *sorted(scope)]
            results = await asyncio.gather(
                *(self.backend.list_leave_requests(emp_id) for emp_id in ids),
                return_exceptions=True,
            )
            failures = [r for r in results if isinstance(r, BaseException)]
            if failures:
                logger.warning(
                    "Scoped request fetch for manager %s failed (%d of %d); widening",
                    key, len(failures), len(ids),
                )
            else:
                fetched = [req for batch in results for req in batch]

        if fetched is None:
            try:
                fetched = await self.backend.list_leave_requests()
            except StorageError as exc:
                logger.warning("Unscoped request fetch failed: %s", exc)
                return []

        if fetched:
            self._merge_requests(fetched)
        return fetched

    async def load_attendance(self, employee_id: str, *, force: bool = False) -> list[AttendanceOut]:
        key = canonical_id(employee_id)
        if not force and key in self._attendance:
            return list(self._attendance[key])
        try:
            records = await self.backend.list_attendance(key)
        except StorageError as exc:
            logger.warning("Loading attendance of %s failed: %s", key, exc)
            return list(self._attendance.get(key, []))
        self._attendance[key] = records
        return list(records)

    async def refresh_attendance(self, employee_id: str) -> list[AttendanceOut]:
        return await self.load_attendance(employee_id, force=True)

    async def load_notifications(
        self, employee_id: str, *, force: bool = False
    ) -> list[NotificationOut]:
        key = canonical_id(employee_id)
        if not force and key in self._notifications:
            return list(self._notifications[key])
        try:
            items = await self.backend.list_notifications(key)
        except StorageError as exc:
            logger.warning("Loading notifications of %s failed: %s", key, exc)
            return list(self._notifications.get(key, []))
        self._notifications[key] = _newest_first(items)
        return list(self._notifications[key])

    async def refresh_notifications(self, employee_id: str) -> list[NotificationOut]:
        return await self.load_notifications(employee_id, force=True)

    # ─────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────

    async def _write(self, action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except StorageError as exc:
            logger.error("Could not %s: %s", action, exc)
            raise BackendUnavailableError(f"Could not {action}: {exc}") from exc

    async def create_employee(self, payload: EmployeeCreate) -> EmployeeOut:
        created = await self._write("create employee", self.backend.create_employee(payload))
        await self.refresh_employees()
        return created

    async def update_employee(self, employee_id: str, changes: EmployeeUpdate) -> EmployeeOut:
        updated = await self._write(
            "update employee", self.backend.update_employee(canonical_id(employee_id), changes)
        )
        await self.refresh_employees()
        return updated

    async def delete_employee(self, employee_id: str) -> None:
        await self._write("delete employee", self.backend.delete_employee(canonical_id(employee_id)))
        key = canonical_id(employee_id)
        self._employees = [e for e in self._employees if e.id != key]
        await self.refresh_employees()

    async def replace_leave_types(self, leave_types: list[LeaveTypeOut]) -> list[LeaveTypeOut]:
        await self._write("save leave types", self.backend.replace_leave_types(leave_types))
        await self.refresh_leave_types()
        return self.get_leave_types()

    async def submit_leave_request(self, payload: LeaveRequestCreate) -> LeaveRequestOut:
        created = await self._write(
            "submit leave request", self.backend.create_leave_request(payload)
        )
        if not await self.refresh_leave_requests():
            self._merge_requests([created])
        return created

    async def update_leave_request_status(
        self,
        request_id: str,
        status: LeaveStatus,
        comment: Optional[str],
        actor_id: str,
    ) -> LeaveRequestOut:
        updated = await self._write(
            "update leave request",
            self.backend.update_leave_request_status(request_id, status, comment, actor_id),
        )
        if not await self.refresh_leave_requests():
            self._merge_requests([updated])
        return updated

    # ── Holidays: optimistic apply, restore on failure ──────────────

    async def _apply_tentative(
        self, action: str, tentative: dict[date, str], write: Awaitable[None]
    ) -> None:
        previous = self._holidays
        self._holidays = tentative
        try:
            await write
        except StorageError as exc:
            self._holidays = previous
            logger.warning("Could not %s; restored previous holidays: %s", action, exc)
            raise BackendUnavailableError(f"Could not {action}: {exc}") from exc
        await self.refresh_holidays()

    async def save_holiday(self, day: date, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationException("name", "Holiday name is required.")
        if len(name) > MAX_HOLIDAY_NAME_LENGTH:
            raise ValidationException(
                "name", f"Holiday name must be at most {MAX_HOLIDAY_NAME_LENGTH} characters."
            )
        tentative = {**self._holidays, day: name}
        await self._apply_tentative("save holiday", tentative, self.backend.save_holiday(day, name))

    async def delete_holiday(self, day: date) -> None:
        tentative = {d: n for d, n in self._holidays.items() if d != day}
        await self._apply_tentative("delete holiday", tentative, self.backend.delete_holiday(day))

    # ── Attendance ──────────────────────────────────────────────────

    async def record_attendance(
        self,
        employee_id: str,
        kind: AttendanceEvent,
        moment: datetime,
        penalty_applied: bool = False,
    ) -> AttendanceOut:
        key = canonical_id(employee_id)
        record = await self._write(
            "record attendance",
            self.backend.record_attendance(key, kind, moment, penalty_applied),
        )
        await self.refresh_attendance(key)
        return record

    async def save_attendance(self, entry: AttendanceEntry) -> AttendanceOut:
        record = await self._write("save attendance", self.backend.save_attendance(entry))
        await self.refresh_attendance(entry.employee_id)
        return record

    # ── Notifications ───────────────────────────────────────────────

    async def create_notification(self, payload: NotificationCreate) -> NotificationOut:
        created = await self._write(
            "create notification", self.backend.create_notification(payload)
        )
        if payload.employee_id in self._notifications:
            await self.refresh_notifications(payload.employee_id)
        return created

    async def mark_notification_read(self, notification_id: str, employee_id: str) -> bool:
        key = canonical_id(employee_id)
        changed = await self._write(
            "mark notification read",
            self.backend.mark_notification_read(notification_id, key),
        )
        if changed:
            await self.refresh_notifications(key)
        return changed

    async def status(self) -> BackendStatus:
        return await self.backend.status()
