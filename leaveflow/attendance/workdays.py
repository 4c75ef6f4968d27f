"""Working-day calendar: weekends plus the company holiday set.

Pure functions; safe to call concurrently from any task.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Container

# Saturday (5) and Sunday (6)
WEEKEND_DAYS = frozenset({5, 6})


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def is_non_working(day: date, holidays: Container[date] = ()) -> bool:
    """True for Saturdays, Sundays and any date in ``holidays``."""
    return is_weekend(day) or day in holidays


def calendar_days(start: date, end: date) -> int:
    """Inclusive day count; 0 when ``start`` is after ``end``."""
    if start > end:
        return 0
    return (end - start).days + 1


def business_days(start: date, end: date, holidays: Container[date] = ()) -> int:
    """Count the working days in the inclusive range [start, end]."""
    count = 0
    current = start
    while current <= end:
        if not is_non_working(current, holidays):
            count += 1
        current += timedelta(days=1)
    return count


def reporting_days(start: date, end: date, holidays: Container[date] = ()) -> int:
    """Day count for reports.

    Same as :func:`business_days`, except that a valid range containing no
    working day at all (a weekend-only or holiday-only request) reports its
    calendar length. Never use this for quota deduction.
    """
    days = business_days(start, end, holidays)
    if days == 0:
        return calendar_days(start, end)
    return days
