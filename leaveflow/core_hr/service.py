"""Core HR service layer: employee administration.

Business logic:
  - Next employee id (max numeric id + 1, zero-padded)
  - Default quotas from the active leave types applicable to the gender
  - Manager assignment without cycles
  - The last remaining employee cannot be deleted
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from leaveflow.cache.sync import SynchronizedCache
from leaveflow.common.constants import (
    CANONICAL_ID_WIDTH,
    MAX_EMPLOYEE_NAME_LENGTH,
    GenderType,
    UserRole,
)
from leaveflow.common.exceptions import NotFoundException, ValidationException
from leaveflow.common.identifiers import canonical_id
from leaveflow.core_hr.hierarchy import would_create_cycle
from leaveflow.core_hr.schemas import EmployeeCreate, EmployeeOut, EmployeeUpdate
from leaveflow.leave.schemas import LeaveTypeOut

logger = logging.getLogger(__name__)


def next_employee_id(employees: Iterable[EmployeeOut]) -> str:
    numbers = [int(e.id) for e in employees if e.id.isdigit()]
    return str(max(numbers, default=0) + 1).zfill(CANONICAL_ID_WIDTH)


def default_quotas(gender: GenderType, leave_types: Iterable[LeaveTypeOut]) -> dict[str, Decimal]:
    return {
        lt.id: lt.default_quota
        for lt in leave_types
        if lt.is_active and lt.applicable_to.applies_to(gender)
    }


class EmployeeService:
    """Employee administration over the cache."""

    @staticmethod
    def _require(cache: SynchronizedCache, employee_id: str) -> EmployeeOut:
        employee = cache.get_employee(employee_id)
        if employee is None:
            raise NotFoundException("Employee", canonical_id(employee_id))
        return employee

    @staticmethod
    def _check_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationException("name", "Employee name is required.")
        if len(name) > MAX_EMPLOYEE_NAME_LENGTH:
            raise ValidationException(
                "name", f"Employee name must be at most {MAX_EMPLOYEE_NAME_LENGTH} characters."
            )
        return name

    @staticmethod
    async def create_employee(
        cache: SynchronizedCache,
        *,
        name: str,
        email: str = "",
        role: UserRole = UserRole.employee,
        gender: GenderType = GenderType.male,
        department: str = "",
        join_date: Optional[date] = None,
        manager_id: Optional[str] = None,
        quotas: Optional[dict[str, Decimal]] = None,
    ) -> EmployeeOut:
        name = EmployeeService._check_name(name)
        if manager_id and cache.get_employee(manager_id) is None:
            raise ValidationException("manager_id", f"Manager {manager_id} does not exist.")

        employees = cache.get_employees()
        if quotas is None:
            quotas = default_quotas(gender, cache.get_leave_types())
        payload = EmployeeCreate(
            id=next_employee_id(employees),
            name=name,
            email=email.strip(),
            role=role,
            gender=gender,
            department=department.strip(),
            join_date=join_date,
            manager_id=manager_id,
            quotas=quotas,
        )
        created = await cache.create_employee(payload)
        logger.info("Created employee %s (%s)", created.id, created.role.value)
        return created

    @staticmethod
    async def update_employee(
        cache: SynchronizedCache,
        employee_id: str,
        changes: EmployeeUpdate,
    ) -> EmployeeOut:
        employee = EmployeeService._require(cache, employee_id)
        fields = changes.model_fields_set

        if "name" in fields and changes.name is not None:
            EmployeeService._check_name(changes.name)
        if "manager_id" in fields and changes.manager_id:
            if cache.get_employee(changes.manager_id) is None:
                raise ValidationException(
                    "manager_id", f"Manager {changes.manager_id} does not exist."
                )
            if would_create_cycle(employee.id, changes.manager_id, cache.get_employees()):
                raise ValidationException(
                    "manager_id",
                    f"Assigning {changes.manager_id} as manager of {employee.id} "
                    f"would create a reporting cycle.",
                )
        return await cache.update_employee(employee.id, changes)

    @staticmethod
    async def set_quota(
        cache: SynchronizedCache,
        employee_id: str,
        leave_type_id: str,
        days: Decimal,
    ) -> EmployeeOut:
        employee = EmployeeService._require(cache, employee_id)
        if days < 0:
            raise ValidationException("quotas", "Quota cannot be negative.")
        quotas = {**employee.quotas, leave_type_id.upper(): Decimal(days)}
        return await cache.update_employee(employee.id, EmployeeUpdate(quotas=quotas))

    @staticmethod
    async def delete_employee(cache: SynchronizedCache, employee_id: str) -> None:
        employee = EmployeeService._require(cache, employee_id)
        if len(cache.get_employees()) <= 1:
            raise ValidationException("id", "The last remaining employee cannot be deleted.")
        await cache.delete_employee(employee.id)
        logger.info("Deleted employee %s", employee.id)
