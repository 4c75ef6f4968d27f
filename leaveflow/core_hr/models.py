"""Core HR ORM models: Employee."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leaveflow.common.constants import GenderType, UserRole
from leaveflow.database import Base


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, default="")
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role", values_callable=_enum_values),
        default=UserRole.employee,
    )
    gender: Mapped[GenderType] = mapped_column(
        sa.Enum(GenderType, name="gender_type", values_callable=_enum_values),
        default=GenderType.male,
    )
    department: Mapped[str] = mapped_column(sa.String(200), default="")
    join_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    # Direct manager; kept as a plain id so history survives manager removal
    manager_id: Mapped[Optional[str]] = mapped_column(sa.String(32), index=True)
    # leave type id -> annual quota, values stored as decimal strings
    quotas: Mapped[dict] = mapped_column(sa.JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
