"""Quota ledger and conflict detection.

Business logic:
  - Consumed days per employee / category / year (approved + pending)
  - Effective quota with the one-year tenure rule for VACATION
  - Late-attendance penalty on the VACATION quota
  - Inclusive date-range overlap between active requests
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Container, Iterable, Optional, Sequence

from leaveflow.attendance.workdays import business_days
from leaveflow.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DAYS_PER_YEAR,
    DEFAULT_LEAVE_TYPES_BY_ID,
    LATE_PENALTY_DAYS,
    UNLIMITED_QUOTA,
    VACATION,
    LeaveStatus,
)
from leaveflow.core_hr.schemas import EmployeeOut
from leaveflow.leave.schemas import LeaveRequestOut, LeaveTypeOut


@dataclass(frozen=True)
class LeaveUsage:
    approved_days: int = 0
    pending_days: int = 0

    @property
    def used_days(self) -> int:
        return self.approved_days + self.pending_days


# ── Quotas ──────────────────────────────────────────────────────────

def is_unlimited(quota: Decimal) -> bool:
    return quota >= UNLIMITED_QUOTA


def is_metered(quota: Decimal) -> bool:
    """Only quotas strictly between 0 and the unlimited marker are enforced."""
    return Decimal("0") < quota < UNLIMITED_QUOTA


def is_enforced(leave_type_id: str, quota: Decimal) -> bool:
    """Whether submissions of this category are checked against ``quota``.

    VACATION is checked at any quota below the unlimited marker, so a quota
    worn down to 0 by late penalties leaves nothing to take. Other categories
    treat 0 as not metered.
    """
    if leave_type_id == VACATION:
        return not is_unlimited(quota)
    return is_metered(quota)


def tenure_years(join_date: Optional[date], today: date) -> float:
    if join_date is None:
        return 0.0
    return (today - join_date).days / DAYS_PER_YEAR


def category_default_quota(leave_type_id: str, leave_types: Sequence[LeaveTypeOut]) -> Decimal:
    for lt in leave_types:
        if lt.id == leave_type_id:
            return lt.default_quota
    standard = DEFAULT_LEAVE_TYPES_BY_ID.get(leave_type_id)
    return Decimal(standard["default_quota"]) if standard else Decimal("0")


def nominal_quota(
    employee: EmployeeOut,
    leave_type_id: str,
    leave_types: Sequence[LeaveTypeOut],
) -> Decimal:
    """The employee's own quota entry, else the category default."""
    own = employee.quota_for(leave_type_id)
    if own is not None:
        return own
    return category_default_quota(leave_type_id, leave_types)


def effective_quota(
    employee: EmployeeOut,
    leave_type_id: str,
    leave_types: Sequence[LeaveTypeOut],
    today: date,
) -> Decimal:
    """Nominal quota, except VACATION is 0 during the first year of tenure."""
    if leave_type_id == VACATION and tenure_years(employee.join_date, today) < 1:
        return Decimal("0")
    return nominal_quota(employee, leave_type_id, leave_types)


# ── Usage ───────────────────────────────────────────────────────────

def usage(
    requests: Iterable[LeaveRequestOut],
    employee_id: str,
    category_id: str,
    year: int,
    holidays: Container[date] = (),
) -> LeaveUsage:
    """Business days of non-rejected requests starting in ``year``."""
    approved = pending = 0
    for req in requests:
        if req.employee_id != employee_id or req.leave_type_id != category_id:
            continue
        if req.start_date.year != year:
            continue
        if req.status is LeaveStatus.approved:
            approved += business_days(req.start_date, req.end_date, holidays)
        elif req.status is LeaveStatus.pending:
            pending += business_days(req.start_date, req.end_date, holidays)
    return LeaveUsage(approved_days=approved, pending_days=pending)


def remaining(quota: Decimal, used: LeaveUsage) -> Decimal:
    return quota - used.used_days


# ── Late penalty ────────────────────────────────────────────────────

def penalized_vacation_quota(
    employee: EmployeeOut,
    leave_types: Sequence[LeaveTypeOut],
) -> Decimal:
    """VACATION quota after one late-attendance deduction, floored at zero."""
    current = nominal_quota(employee, VACATION, leave_types)
    return max(Decimal("0"), current - LATE_PENALTY_DAYS)


# ── Conflicts ───────────────────────────────────────────────────────

def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end


def overlaps(start: date, end: date, existing: Iterable[LeaveRequestOut]) -> bool:
    """True if [start, end] intersects any PENDING or APPROVED request in ``existing``."""
    return any(
        req.status in ACTIVE_LEAVE_STATUSES
        and ranges_overlap(start, end, req.start_date, req.end_date)
        for req in existing
    )
