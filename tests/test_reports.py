"""Report tests: approval queue, period summaries, dashboard balances and
the vacation ledger.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from leaveflow.attendance.service import AttendanceService
from leaveflow.common.constants import SICK, VACATION, LeaveStatus
from leaveflow.common.exceptions import NotFoundException
from leaveflow.reports.schemas import LedgerKind
from leaveflow.reports.service import ReportService
from tests.conftest import TODAY, add_request


async def _seed_history(cache):
    """003: approved vacation in Nov, rejected sick leave in Oct.
    005: pending weekend-only personal leave and a pending weekday request.
    """
    await add_request(
        cache, employee_id="003", leave_type_id=VACATION,
        start=date(2026, 11, 2), end=date(2026, 11, 4), status=LeaveStatus.approved,
    )
    await add_request(
        cache, employee_id="003", leave_type_id=SICK,
        start=date(2026, 10, 12), end=date(2026, 10, 14), status=LeaveStatus.rejected,
    )
    await add_request(
        cache, employee_id="005", leave_type_id="PERSONAL",
        start=date(2026, 11, 7), end=date(2026, 11, 8),
    )
    await add_request(
        cache, employee_id="004", leave_type_id=SICK,
        start=date(2026, 10, 15), end=date(2026, 10, 15),
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Approval queue
# ═════════════════════════════════════════════════════════════════════


class TestApprovalQueue:
    """Tests for ReportService.approval_queue()."""

    async def test_admin_sees_all_pending(self, cache):
        await _seed_history(cache)
        queue = ReportService.approval_queue(cache, "001")
        assert {r.employee_id for r in queue} == {"004", "005"}

    async def test_manager_sees_direct_reports_only(self, cache):
        await _seed_history(cache)
        assert [r.employee_id for r in ReportService.approval_queue(cache, "002")] == ["004"]
        assert [r.employee_id for r in ReportService.approval_queue(cache, "003")] == ["005"]

    async def test_employee_sees_nothing(self, cache):
        await _seed_history(cache)
        assert ReportService.approval_queue(cache, "005") == []


# ═════════════════════════════════════════════════════════════════════
# 2. Period summary
# ═════════════════════════════════════════════════════════════════════


class TestPeriodSummary:
    """Counts per status and reporting days per leave type."""

    async def test_month_summary(self, cache):
        await _seed_history(cache)
        report = ReportService.period_summary(cache, "001", 2026, 11)

        assert report.total == 2
        assert report.approved == 1
        assert report.pending == 1
        assert report.rejected == 0
        assert report.days_by_type[VACATION] == 3
        # weekend-only range falls back to calendar days
        assert report.days_by_type["PERSONAL"] == 2
        assert report.days_by_type[SICK] == 0

    async def test_holidays_excluded_from_days(self, cache):
        await _seed_history(cache)
        report = ReportService.period_summary(cache, "001", 2026, 10)
        assert report.rejected == 1
        # Mon 12 → Wed 14 Oct minus the 13 Oct holiday, plus Thu 15 Oct
        assert report.days_by_type[SICK] == 3

    async def test_year_summary(self, cache):
        await _seed_history(cache)
        report = ReportService.period_summary(cache, "001", 2026)
        assert report.total == 4
        assert report.month is None

    async def test_manager_scope(self, cache):
        await _seed_history(cache)
        report = ReportService.period_summary(cache, "003", 2026)
        assert report.total == 1
        assert report.days_by_type["PERSONAL"] == 2

    async def test_employee_sees_only_own(self, cache):
        await _seed_history(cache)
        assert ReportService.period_summary(cache, "005", 2026).total == 1
        assert ReportService.period_summary(cache, "004", 2026, 11).total == 0

    async def test_single_employee_filter(self, cache):
        await _seed_history(cache)
        report = ReportService.period_summary(cache, "001", 2026, employee_id=3)
        assert report.total == 2

    async def test_all_active_types_listed(self, cache):
        report = ReportService.period_summary(cache, "001", 2026, 1)
        assert report.total == 0
        assert len(report.days_by_type) == 9
        assert set(report.days_by_type.values()) == {0}

    async def test_unknown_viewer(self, cache):
        with pytest.raises(NotFoundException):
            ReportService.period_summary(cache, "999", 2026)


# ═════════════════════════════════════════════════════════════════════
# 3. Dashboard balances
# ═════════════════════════════════════════════════════════════════════


class TestDashboardBalances:
    """Tests for ReportService.dashboard_balances()."""

    async def test_vacation_balance(self, cache):
        await _seed_history(cache)
        await add_request(
            cache, employee_id="003", leave_type_id=VACATION,
            start=date(2026, 11, 9), end=date(2026, 11, 10),
        )
        balances = {b.leave_type_id: b for b in ReportService.dashboard_balances(
            cache, "003", today=TODAY,
        )}

        vacation = balances[VACATION]
        assert vacation.quota == Decimal("12")
        assert vacation.approved_days == 3
        assert vacation.pending_days == 2
        assert vacation.remaining == Decimal("7")
        assert not vacation.unlimited

    async def test_first_year_vacation_is_zero(self, cache):
        balances = {b.leave_type_id: b for b in ReportService.dashboard_balances(
            cache, "004", today=TODAY,
        )}
        assert balances[VACATION].remaining == Decimal("0")

    async def test_types_follow_gender(self, cache):
        male = {b.leave_type_id for b in ReportService.dashboard_balances(cache, "003", today=TODAY)}
        female = {b.leave_type_id for b in ReportService.dashboard_balances(cache, "004", today=TODAY)}
        assert "PATERNITY" in male and "MATERNITY" not in male
        assert "STERILIZATION" in female and "MILITARY" not in female

    async def test_unlimited_category(self, cache):
        balances = {b.leave_type_id: b for b in ReportService.dashboard_balances(
            cache, "004", today=TODAY,
        )}
        sterilization = balances["STERILIZATION"]
        assert sterilization.unlimited
        assert sterilization.remaining == Decimal("999")


# ═════════════════════════════════════════════════════════════════════
# 4. Vacation ledger
# ═════════════════════════════════════════════════════════════════════


class TestVacationLedger:

    async def test_leave_and_penalties(self, cache):
        await _seed_history(cache)
        await AttendanceService.check_in(cache, "003", datetime(2026, 10, 19, 9, 45))

        ledger = await ReportService.vacation_ledger(cache, "003", year=2026, today=TODAY)

        kinds = sorted(e.kind.value for e in ledger.entries)
        assert kinds == [LedgerKind.leave.value, LedgerKind.penalty.value]
        assert ledger.quota == Decimal("12")
        assert ledger.total_deducted == Decimal("3.25")
        assert ledger.balance == Decimal("8.75")

    async def test_pending_and_other_years_excluded(self, cache):
        await add_request(
            cache, employee_id="003", leave_type_id=VACATION,
            start=date(2026, 11, 9), end=date(2026, 11, 9),
        )
        await add_request(
            cache, employee_id="003", leave_type_id=VACATION,
            start=date(2025, 12, 1), end=date(2025, 12, 1), status=LeaveStatus.approved,
        )
        ledger = await ReportService.vacation_ledger(cache, "003", year=2026, today=TODAY)
        assert ledger.entries == []
        assert ledger.total_deducted == Decimal("0")

    async def test_entries_newest_first(self, cache):
        await AttendanceService.check_in(cache, "003", datetime(2026, 10, 19, 9, 45))
        await AttendanceService.check_in(cache, "003", datetime(2026, 10, 20, 9, 50))

        ledger = await ReportService.vacation_ledger(cache, "003", year=2026, today=TODAY)
        assert [e.day for e in ledger.entries] == [date(2026, 10, 20), date(2026, 10, 19)]
