"""Leave ORM models: LeaveType, LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leaveflow.common.constants import Applicability, LeaveStatus
from leaveflow.core_hr.models import _enum_values
from leaveflow.database import Base


class LeaveType(Base):
    __tablename__ = "leave_types"

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    label: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="")
    applicable_to: Mapped[Applicability] = mapped_column(
        sa.Enum(Applicability, name="applicability", values_callable=_enum_values),
        default=Applicability.both,
    )
    default_quota: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"))
    order: Mapped[int] = mapped_column(sa.Integer, default=0)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[str] = mapped_column(
        sa.String(64),
        primary_key=True,
        default=lambda: f"LR{uuid.uuid4().hex[:16]}",
    )
    employee_id: Mapped[str] = mapped_column(sa.String(32), nullable=False, index=True)
    # Denormalized so history keeps the name after the employee is removed
    employee_name: Mapped[str] = mapped_column(sa.String(200), default="")
    leave_type_id: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    reason: Mapped[str] = mapped_column(sa.Text, default="")
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", values_callable=_enum_values),
        default=LeaveStatus.pending,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    reviewed_by: Mapped[Optional[str]] = mapped_column(sa.String(32))
    manager_comment: Mapped[Optional[str]] = mapped_column(sa.String(500))
