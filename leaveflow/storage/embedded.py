"""Embedded storage backend: local SQLite through async SQLAlchemy."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, Optional

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.attendance.models import AttendanceRecord, Holiday
from leaveflow.attendance.schemas import AttendanceEntry, AttendanceOut
from leaveflow.common.constants import (
    CANONICAL_ID_WIDTH,
    DEFAULT_HOLIDAYS,
    DEFAULT_LEAVE_TYPES,
    Applicability,
    AttendanceEvent,
    LeaveStatus,
)
from leaveflow.common.exceptions import StorageError
from leaveflow.common.identifiers import canonical_id
from leaveflow.core_hr.models import Employee
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from leaveflow.database import Base, build_engine, build_session_factory
from leaveflow.leave.models import LeaveRequest, LeaveType
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut, LeaveTypeOut
from leaveflow.notifications.models import Notification
from leaveflow.notifications.schemas import NotificationCreate, NotificationOut
from leaveflow.storage.base import BackendStatus, StorageBackend

logger = logging.getLogger(__name__)


def _quota_column(quotas: Optional[dict[str, Decimal]]) -> dict[str, str]:
    """JSON column form of a quota map (decimal strings)."""
    return {k: str(v) for k, v in (quotas or {}).items()}


def _next_numeric_id(existing: list[str]) -> str:
    numbers = [int(i) for i in existing if i.isdigit()]
    return str(max(numbers, default=0) + 1).zfill(CANONICAL_ID_WIDTH)


class EmbeddedBackend(StorageBackend):
    """Single-file (or in-memory) SQLite store; seeds default leave types and holidays."""

    name = "embedded"

    def __init__(self, database_url: str, *, echo: bool = False, seed: bool = True) -> None:
        self._url = database_url
        self._engine = build_engine(database_url, echo=echo)
        self._session_factory = build_session_factory(self._engine)
        self._seed = seed

    # ── Lifecycle ───────────────────────────────────────────────────

    async def init(self) -> None:
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot initialise embedded store: {exc}") from exc
        if self._seed:
            await self._seed_defaults()

    async def close(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Unit of work: commit on success, roll back on any error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Embedded store error: %s", exc)
                raise StorageError(str(exc)) from exc
            except Exception:
                await session.rollback()
                raise

    async def _seed_defaults(self) -> None:
        async with self._session() as session:
            type_count = await session.scalar(select(func.count()).select_from(LeaveType))
            if not type_count:
                for lt in DEFAULT_LEAVE_TYPES:
                    session.add(
                        LeaveType(
                            id=lt["id"],
                            label=lt["label"],
                            applicable_to=Applicability(lt["applicable_to"]),
                            default_quota=Decimal(lt["default_quota"]),
                            order=lt["order"],
                            is_active=True,
                        )
                    )
                logger.info("Seeded %d default leave types", len(DEFAULT_LEAVE_TYPES))
            holiday_count = await session.scalar(select(func.count()).select_from(Holiday))
            if not holiday_count:
                for iso, name in DEFAULT_HOLIDAYS.items():
                    session.add(Holiday(day=date.fromisoformat(iso), name=name))
                logger.info("Seeded %d default holidays", len(DEFAULT_HOLIDAYS))

    # ── Employees ───────────────────────────────────────────────────

    async def list_employees(self) -> list[EmployeeOut]:
        async with self._session() as session:
            rows = (await session.scalars(select(Employee).order_by(Employee.id))).all()
            return [EmployeeOut.model_validate(row) for row in rows]

    async def create_employee(self, payload: EmployeeCreate) -> EmployeeOut:
        async with self._session() as session:
            emp_id = payload.id
            if emp_id is None:
                existing = (await session.scalars(select(Employee.id))).all()
                emp_id = _next_numeric_id(list(existing))
            elif await session.get(Employee, emp_id) is not None:
                raise StorageError(f"Employee {emp_id} already exists")
            data = payload.model_dump(exclude={"id", "quotas"})
            row = Employee(id=emp_id, quotas=_quota_column(payload.quotas), **data)
            session.add(row)
            await session.flush()
            return EmployeeOut.model_validate(row)

    async def update_employee(self, employee_id: str, changes: EmployeeUpdate) -> EmployeeOut:
        async with self._session() as session:
            row = await session.get(Employee, canonical_id(employee_id))
            if row is None:
                raise StorageError(f"Employee {employee_id} not found")
            for field, value in changes.changes().items():
                if field == "quotas":
                    value = _quota_column(value)
                setattr(row, field, value)
            row.updated_at = datetime.now(timezone.utc)
            await session.flush()
            return EmployeeOut.model_validate(row)

    async def delete_employee(self, employee_id: str) -> None:
        async with self._session() as session:
            row = await session.get(Employee, canonical_id(employee_id))
            if row is None:
                raise StorageError(f"Employee {employee_id} not found")
            await session.delete(row)

    # ── Leave types ─────────────────────────────────────────────────

    async def list_leave_types(self) -> list[LeaveTypeOut]:
        async with self._session() as session:
            rows = (
                await session.scalars(select(LeaveType).order_by(LeaveType.order, LeaveType.id))
            ).all()
            return [LeaveTypeOut.model_validate(row) for row in rows]

    async def replace_leave_types(self, leave_types: list[LeaveTypeOut]) -> None:
        async with self._session() as session:
            await session.execute(delete(LeaveType))
            for lt in leave_types:
                session.add(LeaveType(**lt.model_dump()))

    # ── Leave requests ──────────────────────────────────────────────

    async def list_leave_requests(
        self, employee_id: Optional[str] = None
    ) -> list[LeaveRequestOut]:
        query = select(LeaveRequest).order_by(LeaveRequest.submitted_at.desc())
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == canonical_id(employee_id))
        async with self._session() as session:
            rows = (await session.scalars(query)).all()
            return [LeaveRequestOut.model_validate(row) for row in rows]

    async def create_leave_request(self, payload: LeaveRequestCreate) -> LeaveRequestOut:
        async with self._session() as session:
            row = LeaveRequest(**payload.model_dump())
            session.add(row)
            await session.flush()
            return LeaveRequestOut.model_validate(row)

    async def update_leave_request_status(
        self,
        request_id: str,
        status: LeaveStatus,
        comment: Optional[str],
        actor_id: str,
    ) -> LeaveRequestOut:
        async with self._session() as session:
            row = await session.get(LeaveRequest, request_id)
            if row is None:
                raise StorageError(f"Leave request {request_id} not found")
            row.status = status
            row.manager_comment = comment
            row.reviewed_by = canonical_id(actor_id)
            row.reviewed_at = datetime.now(timezone.utc)
            await session.flush()
            return LeaveRequestOut.model_validate(row)

    # ── Holidays ────────────────────────────────────────────────────

    async def get_holidays(self) -> dict[date, str]:
        async with self._session() as session:
            rows = (await session.scalars(select(Holiday).order_by(Holiday.day))).all()
            return {row.day: row.name for row in rows}

    async def save_holiday(self, day: date, name: str) -> None:
        async with self._session() as session:
            await session.merge(Holiday(day=day, name=name))

    async def delete_holiday(self, day: date) -> None:
        async with self._session() as session:
            await session.execute(delete(Holiday).where(Holiday.day == day))

    # ── Attendance ──────────────────────────────────────────────────

    async def _attendance_row(
        self, session: AsyncSession, employee_id: str, day: date
    ) -> Optional[AttendanceRecord]:
        return await session.scalar(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.day == day,
            )
        )

    async def list_attendance(self, employee_id: str) -> list[AttendanceOut]:
        query = (
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == canonical_id(employee_id))
            .order_by(AttendanceRecord.day.desc())
        )
        async with self._session() as session:
            rows = (await session.scalars(query)).all()
            return [AttendanceOut.model_validate(row) for row in rows]

    async def record_attendance(
        self,
        employee_id: str,
        kind: AttendanceEvent,
        moment: datetime,
        penalty_applied: bool = False,
    ) -> AttendanceOut:
        emp_id = canonical_id(employee_id)
        stamp = moment.time().replace(microsecond=0)
        async with self._session() as session:
            row = await self._attendance_row(session, emp_id, moment.date())
            if row is None:
                row = AttendanceRecord(employee_id=emp_id, day=moment.date())
                session.add(row)
            if kind is AttendanceEvent.check_in:
                # Only the first IN of a day counts
                if row.check_in is None:
                    row.check_in = stamp
                    row.penalty_applied = penalty_applied
            else:
                row.check_out = stamp
            await session.flush()
            return AttendanceOut.model_validate(row)

    async def save_attendance(self, entry: AttendanceEntry) -> AttendanceOut:
        async with self._session() as session:
            row = await self._attendance_row(session, entry.employee_id, entry.day)
            if row is None:
                row = AttendanceRecord(employee_id=entry.employee_id, day=entry.day)
                session.add(row)
            row.check_in = entry.check_in
            row.check_out = entry.check_out
            await session.flush()
            return AttendanceOut.model_validate(row)

    # ── Notifications ───────────────────────────────────────────────

    async def list_notifications(self, employee_id: str) -> list[NotificationOut]:
        query = (
            select(Notification)
            .where(Notification.employee_id == canonical_id(employee_id))
            .order_by(Notification.created_at.desc())
        )
        async with self._session() as session:
            rows = (await session.scalars(query)).all()
            return [NotificationOut.model_validate(row) for row in rows]

    async def create_notification(self, payload: NotificationCreate) -> NotificationOut:
        async with self._session() as session:
            row = Notification(**payload.model_dump())
            session.add(row)
            await session.flush()
            return NotificationOut.model_validate(row)

    async def mark_notification_read(self, notification_id: str, employee_id: str) -> bool:
        async with self._session() as session:
            row = await session.scalar(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.employee_id == canonical_id(employee_id),
                )
            )
            if row is None:
                return False
            row.is_read = True
            return True

    # ── Status ──────────────────────────────────────────────────────

    async def status(self) -> BackendStatus:
        try:
            async with self._session() as session:
                await session.execute(text("SELECT 1"))
        except StorageError as exc:
            return BackendStatus(server="embedded", database="error", message=str(exc))
        return BackendStatus(
            server="embedded",
            database="connected",
            message=self._engine.url.database or ":memory:",
        )
