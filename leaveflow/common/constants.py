"""Enums and constants for LeaveFlow: shared by the embedded store and the wire."""

from __future__ import annotations

import enum
from datetime import time
from decimal import Decimal


# ── Employees / Roles ───────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "EMPLOYEE"
    manager = "MANAGER"
    admin = "ADMIN"


class GenderType(str, enum.Enum):
    male = "male"
    female = "female"


class Applicability(str, enum.Enum):
    male = "male"
    female = "female"
    both = "both"

    def applies_to(self, gender: GenderType) -> bool:
        return self is Applicability.both or self.value == gender.value


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


# Statuses that hold a date range and reserve quota
ACTIVE_LEAVE_STATUSES = frozenset({LeaveStatus.pending, LeaveStatus.approved})
REVIEW_OUTCOMES = frozenset({LeaveStatus.approved, LeaveStatus.rejected})

SICK = "SICK"
VACATION = "VACATION"
OTHER = "OTHER"

STANDARD_LEAVE_TYPE_IDS: tuple[str, ...] = (
    "SICK",
    "VACATION",
    "PERSONAL",
    "MATERNITY",
    "STERILIZATION",
    "PATERNITY",
    "ORDINATION",
    "MILITARY",
    "OTHER",
)

# Quota at or above this value means "no limit"
UNLIMITED_QUOTA = Decimal("999")


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceEvent(str, enum.Enum):
    check_in = "IN"
    check_out = "OUT"


LATE_CUTOFF = time(9, 30, 0)
LATE_PENALTY_DAYS = Decimal("0.25")


# ── Input bounds ────────────────────────────────────────────────────

MAX_REASON_LENGTH = 2000
MAX_MANAGER_COMMENT_LENGTH = 500
MAX_HOLIDAY_NAME_LENGTH = 200
MAX_EMPLOYEE_NAME_LENGTH = 200

# Numeric ids are zero-padded to this width ("4" -> "004")
CANONICAL_ID_WIDTH = 3

DAYS_PER_YEAR = 365.25


# ── Seed data ───────────────────────────────────────────────────────

DEFAULT_LEAVE_TYPES: tuple[dict, ...] = (
    {"id": "SICK", "label": "Sick Leave", "applicable_to": "both", "default_quota": 30, "order": 1},
    {"id": "VACATION", "label": "Vacation Leave", "applicable_to": "both", "default_quota": 12, "order": 2},
    {"id": "PERSONAL", "label": "Personal Leave", "applicable_to": "both", "default_quota": 3, "order": 3},
    {"id": "MATERNITY", "label": "Maternity Leave", "applicable_to": "female", "default_quota": 90, "order": 4},
    {"id": "STERILIZATION", "label": "Sterilization Leave", "applicable_to": "female", "default_quota": 999, "order": 5},
    {"id": "PATERNITY", "label": "Paternity Leave", "applicable_to": "male", "default_quota": 15, "order": 6},
    {"id": "ORDINATION", "label": "Ordination Leave", "applicable_to": "male", "default_quota": 120, "order": 7},
    {"id": "MILITARY", "label": "Military Service Leave", "applicable_to": "male", "default_quota": 60, "order": 8},
    {"id": "OTHER", "label": "Other Leave", "applicable_to": "both", "default_quota": 0, "order": 9},
)

DEFAULT_LEAVE_TYPES_BY_ID: dict[str, dict] = {t["id"]: t for t in DEFAULT_LEAVE_TYPES}

# Company holiday calendar 2026 (ISO date -> name)
DEFAULT_HOLIDAYS: dict[str, str] = {
    "2026-01-01": "New Year's Day",
    "2026-03-03": "Makha Bucha Day",
    "2026-04-06": "Chakri Memorial Day",
    "2026-04-13": "Songkran Festival",
    "2026-04-14": "Songkran Festival",
    "2026-04-15": "Songkran Festival",
    "2026-05-01": "National Labour Day",
    "2026-05-04": "Coronation Day",
    "2026-06-01": "Visakha Bucha Day (substitution)",
    "2026-06-03": "H.M. Queen Suthida's Birthday",
    "2026-07-28": "H.M. King's Birthday",
    "2026-07-29": "Asarnha Bucha Day",
    "2026-08-12": "H.M. Queen Mother's Birthday / Mother's Day",
    "2026-10-13": "King Bhumibol Memorial Day",
    "2026-10-23": "Chulalongkorn Day",
    "2026-12-07": "Father's Day (substitution)",
    "2026-12-10": "Constitution Day",
    "2026-12-31": "New Year's Eve",
}
