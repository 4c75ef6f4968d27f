"""Report Pydantic v2 schemas: balances, period summary, vacation ledger."""

import enum
from datetime import date
from typing import Optional

from pydantic import Field

from leaveflow.common.schemas import Days, WireModel


class LeaveBalanceOut(WireModel):
    """Balance of one leave type for one employee and year."""

    leave_type_id: str
    label: str
    quota: Days
    approved_days: int = 0
    pending_days: int = 0
    remaining: Days
    unlimited: bool = False


class MonthlyReport(WireModel):
    """Request counts and days per leave type over a year or one month of it."""

    year: int
    month: Optional[int] = None
    total: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0
    days_by_type: dict[str, int] = Field(default_factory=dict)


class LedgerKind(str, enum.Enum):
    leave = "LEAVE"
    penalty = "PENALTY"


class LedgerEntry(WireModel):
    id: str
    day: date
    kind: LedgerKind
    description: str
    amount: Days
    timestamp: str


class VacationLedger(WireModel):
    employee_id: str
    year: int
    quota: Days
    entries: list[LedgerEntry] = Field(default_factory=list)
    total_deducted: Days

    @property
    def balance(self):
        return self.quota - self.total_deducted
