"""Attendance service layer: check-in / check-out, manual entries, late penalty.

Business logic:
  - First IN of a day creates the record; a later IN the same day is ignored
  - OUT sets the check-out time
  - A first check-in after 09:30:00 deducts 0.25 day from the VACATION quota
    once per record and notifies the employee and their manager
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Optional

from leaveflow.attendance.schemas import AttendanceEntry, AttendanceOut, is_late_check_in
from leaveflow.cache.sync import SynchronizedCache
from leaveflow.common.constants import VACATION, AttendanceEvent
from leaveflow.common.exceptions import AppException, NotFoundException, ValidationException
from leaveflow.common.identifiers import canonical_id
from leaveflow.core_hr.hierarchy import descendants_of
from leaveflow.core_hr.schemas import EmployeeOut, EmployeeUpdate
from leaveflow.leave.balance import penalized_vacation_quota
from leaveflow.notifications.service import notify_late_penalty

logger = logging.getLogger(__name__)


class AttendanceService:
    """Async attendance operations over the cache."""

    @staticmethod
    def _require(cache: SynchronizedCache, employee_id: str) -> EmployeeOut:
        employee = cache.get_employee(employee_id)
        if employee is None:
            raise NotFoundException("Employee", canonical_id(employee_id))
        return employee

    @staticmethod
    async def get_attendance(
        cache: SynchronizedCache, employee_id: str, *, refresh: bool = False
    ) -> list[AttendanceOut]:
        return await cache.load_attendance(employee_id, force=refresh)

    @staticmethod
    async def get_day(
        cache: SynchronizedCache, employee_id: str, day: date
    ) -> Optional[AttendanceOut]:
        records = await cache.load_attendance(employee_id)
        return next((r for r in records if r.day == day), None)

    # ── Clock events ────────────────────────────────────────────────

    @staticmethod
    async def check_in(
        cache: SynchronizedCache,
        employee_id: str,
        moment: Optional[datetime] = None,
    ) -> AttendanceOut:
        employee = AttendanceService._require(cache, employee_id)
        moment = moment or datetime.now()
        existing = await AttendanceService.get_day(cache, employee.id, moment.date())
        if existing is not None and existing.check_in is not None:
            logger.info(
                "Ignoring repeated check-in of %s on %s", employee.id, moment.date()
            )
            return existing

        late = is_late_check_in(moment.time().replace(microsecond=0))
        penalty = late and not (existing is not None and existing.penalty_applied)
        record = await cache.record_attendance(
            employee.id, AttendanceEvent.check_in, moment, penalty_applied=penalty
        )
        if penalty:
            await AttendanceService._apply_late_penalty(cache, employee, record)
        return record

    @staticmethod
    async def check_out(
        cache: SynchronizedCache,
        employee_id: str,
        moment: Optional[datetime] = None,
    ) -> AttendanceOut:
        employee = AttendanceService._require(cache, employee_id)
        return await cache.record_attendance(
            employee.id, AttendanceEvent.check_out, moment or datetime.now()
        )

    @staticmethod
    async def _apply_late_penalty(
        cache: SynchronizedCache,
        employee: EmployeeOut,
        record: AttendanceOut,
    ) -> None:
        new_quota = penalized_vacation_quota(employee, cache.get_leave_types())
        quotas = {**employee.quotas, VACATION: new_quota}
        await cache.update_employee(employee.id, EmployeeUpdate(quotas=quotas))
        logger.info(
            "Late check-in of %s at %s on %s; VACATION quota now %s",
            employee.id, record.check_in, record.day, new_quota,
        )
        try:
            await notify_late_penalty(cache, employee, record, employee.manager_id)
        except AppException as exc:
            logger.warning("Late-penalty notification for %s failed: %s", employee.id, exc)

    # ── Manual entries ──────────────────────────────────────────────

    @staticmethod
    async def manual_entry(
        cache: SynchronizedCache,
        employee_id: str,
        day: date,
        check_in: Optional[time] = None,
        check_out: Optional[time] = None,
    ) -> AttendanceOut:
        """Administrator correction of one day; never applies a penalty."""
        employee = AttendanceService._require(cache, employee_id)
        if check_in is None and check_out is None:
            raise ValidationException("check_in", "Provide a check-in or check-out time.")
        if check_in is not None and check_out is not None and check_out < check_in:
            raise ValidationException("check_out", "Check-out cannot be before check-in.")
        entry = AttendanceEntry(
            employee_id=employee.id, day=day, check_in=check_in, check_out=check_out
        )
        return await cache.save_attendance(entry)

    # ── Team view ───────────────────────────────────────────────────

    @staticmethod
    async def team_attendance(
        cache: SynchronizedCache,
        manager_id: str,
        day: Optional[date] = None,
    ) -> dict[str, list[AttendanceOut]]:
        """Attendance of every transitive report of ``manager_id``, keyed by employee id."""
        team: dict[str, list[AttendanceOut]] = {}
        for emp_id in sorted(descendants_of(manager_id, cache.get_employees())):
            records = await cache.load_attendance(emp_id)
            if day is not None:
                records = [r for r in records if r.day == day]
            team[emp_id] = records
        return team
