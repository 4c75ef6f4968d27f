"""Working-day calendar tests: weekends, holidays, reporting fallback."""

from __future__ import annotations

from datetime import date

from leaveflow.attendance.workdays import (
    business_days,
    calendar_days,
    is_non_working,
    reporting_days,
)

HOLIDAYS = {date(2026, 10, 13): "King Bhumibol Memorial Day"}


# ═════════════════════════════════════════════════════════════════════
# 1. business_days, is_non_working
# ═════════════════════════════════════════════════════════════════════


class TestBusinessDays:
    """Tests for the weekday and holiday exclusion rules."""

    def test_start_after_end_is_zero(self):
        assert business_days(date(2026, 11, 6), date(2026, 11, 2)) == 0

    def test_single_monday_counts_one(self):
        assert business_days(date(2026, 2, 2), date(2026, 2, 2)) == 1

    def test_full_week_excludes_weekend(self):
        # Mon 2 Nov → Sun 8 Nov
        assert business_days(date(2026, 11, 2), date(2026, 11, 8)) == 5

    def test_holidays_excluded(self):
        # Mon 12 → Fri 16 Oct, Tue 13 is a holiday
        assert business_days(date(2026, 10, 12), date(2026, 10, 16), HOLIDAYS) == 4

    def test_weekend_only_is_zero(self):
        assert business_days(date(2026, 11, 7), date(2026, 11, 8)) == 0

    def test_is_non_working(self):
        assert is_non_working(date(2026, 11, 7))  # Saturday
        assert is_non_working(date(2026, 10, 13), HOLIDAYS)
        assert not is_non_working(date(2026, 10, 14), HOLIDAYS)


# ═════════════════════════════════════════════════════════════════════
# 2. reporting_days
# ═════════════════════════════════════════════════════════════════════


class TestReportingDays:
    """Reporting counts fall back to calendar days when no business days exist."""

    def test_matches_business_days_for_normal_range(self):
        start, end = date(2026, 10, 12), date(2026, 10, 16)
        assert reporting_days(start, end, HOLIDAYS) == business_days(start, end, HOLIDAYS)

    def test_weekend_only_falls_back_to_calendar_days(self):
        assert reporting_days(date(2026, 11, 7), date(2026, 11, 8)) == 2

    def test_holiday_only_falls_back_to_calendar_days(self):
        assert reporting_days(date(2026, 10, 13), date(2026, 10, 13), HOLIDAYS) == 1

    def test_inverted_range_is_zero(self):
        assert reporting_days(date(2026, 11, 8), date(2026, 11, 2)) == 0
        assert calendar_days(date(2026, 11, 8), date(2026, 11, 2)) == 0
