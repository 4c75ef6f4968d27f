"""Attendance ORM models: Holiday, AttendanceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leaveflow.database import Base


class Holiday(Base):
    __tablename__ = "holidays"

    day: Mapped[date] = mapped_column("date", sa.Date, primary_key=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    id: Mapped[str] = mapped_column(
        sa.String(64),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )
    employee_id: Mapped[str] = mapped_column(sa.String(32), nullable=False, index=True)
    day: Mapped[date] = mapped_column("date", sa.Date, nullable=False)
    check_in: Mapped[Optional[time]] = mapped_column(sa.Time)
    check_out: Mapped[Optional[time]] = mapped_column(sa.Time)
    penalty_applied: Mapped[bool] = mapped_column(sa.Boolean, default=False)
