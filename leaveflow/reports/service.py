"""Report service layer: scope resolution, approval queue, summaries, ledgers."""

from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from leaveflow.attendance.workdays import business_days, reporting_days
from leaveflow.cache.sync import SynchronizedCache
from leaveflow.common.constants import LATE_PENALTY_DAYS, VACATION, LeaveStatus, UserRole
from leaveflow.common.exceptions import NotFoundException
from leaveflow.common.identifiers import canonical_id
from leaveflow.core_hr.hierarchy import descendants_of, direct_reports
from leaveflow.core_hr.schemas import EmployeeOut
from leaveflow.leave.balance import (
    category_default_quota,
    effective_quota,
    is_unlimited,
    remaining,
    usage,
)
from leaveflow.leave.schemas import LeaveRequestOut
from leaveflow.leave.service import leave_types_for_gender
from leaveflow.reports.schemas import (
    LeaveBalanceOut,
    LedgerEntry,
    LedgerKind,
    MonthlyReport,
    VacationLedger,
)

logger = logging.getLogger(__name__)


# ── Scope ───────────────────────────────────────────────────────────

def resolve_report_scope(
    viewer: EmployeeOut, employees: Sequence[EmployeeOut]
) -> list[EmployeeOut]:
    """Employees whose data ``viewer`` may report on.

    ADMIN sees everyone and an EMPLOYEE only themself. For a MANAGER the scope
    degrades in order: transitive reports, then direct ``manager_id`` matches,
    then everyone except the manager.
    """
    if viewer.role is UserRole.admin:
        return list(employees)
    if viewer.role is not UserRole.manager:
        return [e for e in employees if e.id == viewer.id]

    closure = descendants_of(viewer.id, employees)
    if closure:
        return [e for e in employees if e.id in closure]
    direct = direct_reports(viewer.id, employees)
    if direct:
        logger.info("Report scope of %s: no hierarchy closure, using direct reports", viewer.id)
        return direct
    logger.info("Report scope of %s: no reports found, widening to all employees", viewer.id)
    return [e for e in employees if e.id != viewer.id]


def _in_period(req: LeaveRequestOut, year: int, month: Optional[int]) -> bool:
    if month is None:
        return req.start_date.year <= year <= req.end_date.year
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    return req.start_date <= last and req.end_date >= first


def _employee(cache: SynchronizedCache, employee_id: str) -> EmployeeOut:
    employee = cache.get_employee(employee_id)
    if employee is None:
        raise NotFoundException("Employee", canonical_id(employee_id))
    return employee


# ═════════════════════════════════════════════════════════════════════
# ReportService
# ═════════════════════════════════════════════════════════════════════


class ReportService:
    """Read-only views computed from the cache snapshots."""

    @staticmethod
    def scoped_requests(
        cache: SynchronizedCache, viewer_id: str
    ) -> list[LeaveRequestOut]:
        viewer = _employee(cache, viewer_id)
        scope = {e.id for e in resolve_report_scope(viewer, cache.get_employees())}
        requests = cache.get_leave_requests()
        if viewer.role is UserRole.manager and not scope:
            return requests
        return [r for r in requests if r.employee_id in scope]

    @staticmethod
    def approval_queue(cache: SynchronizedCache, viewer_id: str) -> list[LeaveRequestOut]:
        """PENDING requests ``viewer_id`` may decide: all for ADMIN, direct reports for MANAGER."""
        viewer = _employee(cache, viewer_id)
        pending = [r for r in cache.get_leave_requests() if r.status is LeaveStatus.pending]
        if viewer.role is UserRole.admin:
            return pending
        if viewer.role is not UserRole.manager:
            return []
        reports = {e.id for e in direct_reports(viewer.id, cache.get_employees())}
        return [r for r in pending if r.employee_id in reports]

    @staticmethod
    def period_summary(
        cache: SynchronizedCache,
        viewer_id: str,
        year: int,
        month: Optional[int] = None,
        *,
        employee_id: Optional[str] = None,
    ) -> MonthlyReport:
        requests = ReportService.scoped_requests(cache, viewer_id)
        if employee_id is not None:
            key = canonical_id(employee_id)
            requests = [r for r in requests if r.employee_id == key]
        requests = [r for r in requests if _in_period(r, year, month)]

        holidays = cache.get_holidays()
        report = MonthlyReport(year=year, month=month, total=len(requests))
        for lt in cache.get_leave_types(active_only=True):
            report.days_by_type[lt.id] = 0
        for req in requests:
            if req.status is LeaveStatus.approved:
                report.approved += 1
            elif req.status is LeaveStatus.rejected:
                report.rejected += 1
            else:
                report.pending += 1
            report.days_by_type[req.leave_type_id] = report.days_by_type.get(
                req.leave_type_id, 0
            ) + reporting_days(req.start_date, req.end_date, holidays)
        return report

    @staticmethod
    def dashboard_balances(
        cache: SynchronizedCache,
        employee_id: str,
        *,
        year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[LeaveBalanceOut]:
        """Balance of every leave type applicable to the employee."""
        today = today or date.today()
        year = year or today.year
        employee = _employee(cache, employee_id)
        leave_types = cache.get_leave_types()
        requests = cache.get_leave_requests()
        holidays = cache.get_holidays()

        balances = []
        for lt in leave_types_for_gender(leave_types, employee.gender):
            quota = effective_quota(employee, lt.id, leave_types, today)
            used = usage(requests, employee.id, lt.id, year, holidays)
            unlimited = is_unlimited(quota)
            balances.append(
                LeaveBalanceOut(
                    leave_type_id=lt.id,
                    label=lt.label,
                    quota=quota,
                    approved_days=used.approved_days,
                    pending_days=used.pending_days,
                    remaining=quota if unlimited else remaining(quota, used),
                    unlimited=unlimited,
                )
            )
        return balances

    @staticmethod
    async def vacation_ledger(
        cache: SynchronizedCache,
        employee_id: str,
        *,
        year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> VacationLedger:
        """Approved VACATION requests and late penalties of ``year``, newest first."""
        today = today or date.today()
        year = year or today.year
        employee = _employee(cache, employee_id)
        holidays = cache.get_holidays()

        entries: list[LedgerEntry] = []
        for req in cache.get_leave_requests():
            if (
                req.employee_id != employee.id
                or req.leave_type_id != VACATION
                or req.status is not LeaveStatus.approved
                or req.start_date.year != year
            ):
                continue
            stamp = req.reviewed_at or req.submitted_at
            entries.append(
                LedgerEntry(
                    id=req.id,
                    day=req.start_date,
                    kind=LedgerKind.leave,
                    description=f"Vacation leave ({req.start_date} to {req.end_date})",
                    amount=Decimal(business_days(req.start_date, req.end_date, holidays)),
                    timestamp=stamp.isoformat() if stamp else req.start_date.isoformat(),
                )
            )

        for record in await cache.load_attendance(employee.id):
            if not (record.is_late and record.penalty_applied) or record.day.year != year:
                continue
            entries.append(
                LedgerEntry(
                    id=record.id,
                    day=record.day,
                    kind=LedgerKind.penalty,
                    description=f"Late check-in deduction ({record.check_in})",
                    amount=LATE_PENALTY_DAYS,
                    timestamp=f"{record.day.isoformat()}T{record.check_in}",
                )
            )

        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return VacationLedger(
            employee_id=employee.id,
            year=year,
            quota=category_default_quota(VACATION, cache.get_leave_types()),
            entries=entries,
            total_deducted=sum((e.amount for e in entries), Decimal("0")),
        )
