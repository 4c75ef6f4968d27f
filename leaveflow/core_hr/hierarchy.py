"""Org hierarchy resolution over a flat employee list."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Iterable, Optional

from leaveflow.common.identifiers import canonical_id
from leaveflow.core_hr.schemas import EmployeeOut


def reports_map(employees: Iterable[EmployeeOut]) -> dict[str, list[str]]:
    """manager id -> ids of its direct reports, built in one pass."""
    children: dict[str, list[str]] = defaultdict(list)
    for emp in employees:
        if emp.manager_id:
            children[emp.manager_id].append(emp.id)
    return children


def direct_reports(manager_id: str, employees: Iterable[EmployeeOut]) -> list[EmployeeOut]:
    key = canonical_id(manager_id)
    return [e for e in employees if e.manager_id == key]


def descendants_of(manager_id: str, employees: Iterable[EmployeeOut]) -> set[str]:
    """Transitive reports of ``manager_id``; never contains the manager itself.

    Breadth-first from the direct reports; an id is visited at most once, so
    malformed (cyclic) data still terminates.
    """
    root = canonical_id(manager_id)
    children = reports_map(employees)
    seen: set[str] = set()
    queue = deque(children.get(root, ()))
    while queue:
        emp_id = queue.popleft()
        if emp_id == root or emp_id in seen:
            continue
        seen.add(emp_id)
        queue.extend(children.get(emp_id, ()))
    return seen


def would_create_cycle(
    employee_id: str,
    new_manager_id: Optional[str],
    employees: Iterable[EmployeeOut],
) -> bool:
    """True if making ``new_manager_id`` the manager of ``employee_id`` loops back."""
    if not new_manager_id:
        return False
    emp_id = canonical_id(employee_id)
    manager = canonical_id(new_manager_id)
    if manager == emp_id:
        return True
    return manager in descendants_of(emp_id, employees)
