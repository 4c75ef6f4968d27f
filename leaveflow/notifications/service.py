"""Notification service: listing, read-marking and cross-module helper dispatchers."""

from __future__ import annotations

import logging
from typing import Optional

from leaveflow.attendance.schemas import AttendanceOut
from leaveflow.cache.sync import SynchronizedCache
from leaveflow.common.constants import LATE_PENALTY_DAYS, LeaveStatus
from leaveflow.core_hr.schemas import EmployeeOut
from leaveflow.leave.schemas import LeaveRequestOut
from leaveflow.notifications.schemas import NotificationCreate, NotificationOut

logger = logging.getLogger(__name__)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations over the cache."""

    @staticmethod
    async def create_notification(
        cache: SynchronizedCache,
        *,
        recipient_id: str,
        title: str,
        message: str,
    ) -> NotificationOut:
        return await cache.create_notification(
            NotificationCreate(employee_id=recipient_id, title=title, message=message)
        )

    @staticmethod
    async def get_notifications(
        cache: SynchronizedCache,
        employee_id: str,
        *,
        unread_only: bool = False,
        refresh: bool = False,
    ) -> list[NotificationOut]:
        """Newest-first notifications of ``employee_id``, loaded lazily."""
        items = await cache.load_notifications(employee_id, force=refresh)
        if unread_only:
            return [n for n in items if not n.is_read]
        return items

    @staticmethod
    async def unread_count(cache: SynchronizedCache, employee_id: str) -> int:
        items = await cache.load_notifications(employee_id)
        return sum(1 for n in items if not n.is_read)

    @staticmethod
    async def mark_read(
        cache: SynchronizedCache,
        notification_id: str,
        employee_id: str,
    ) -> bool:
        """Mark one notification read. Only its recipient can do so."""
        changed = await cache.mark_notification_read(notification_id, employee_id)
        if not changed:
            logger.warning(
                "Notification %s not marked read: not found for recipient %s",
                notification_id, employee_id,
            )
        return changed


# ── Helper dispatchers (called from other modules) ─────────────────


async def notify_leave_request(
    cache: SynchronizedCache,
    leave_request: LeaveRequestOut,
    approver_id: str,
) -> NotificationOut:
    """Notify the approver that a new leave request needs review."""
    return await NotificationService.create_notification(
        cache,
        recipient_id=approver_id,
        title="New Leave Request",
        message=(
            f"{leave_request.employee_name or leave_request.employee_id} requested "
            f"{leave_request.leave_type_id} leave from {leave_request.start_date} to "
            f"{leave_request.end_date}; it requires your approval."
        ),
    )


async def notify_leave_decision(
    cache: SynchronizedCache,
    leave_request: LeaveRequestOut,
) -> NotificationOut:
    """Notify the employee that their leave request was approved or rejected."""
    approved = leave_request.status is LeaveStatus.approved
    message = (
        f"Your leave request from {leave_request.start_date} to "
        f"{leave_request.end_date} has been {'approved' if approved else 'rejected'}."
    )
    if leave_request.manager_comment:
        message += f" Comment: {leave_request.manager_comment}"
    return await NotificationService.create_notification(
        cache,
        recipient_id=leave_request.employee_id,
        title="Leave Request Approved" if approved else "Leave Request Rejected",
        message=message,
    )


async def notify_late_penalty(
    cache: SynchronizedCache,
    employee: EmployeeOut,
    record: AttendanceOut,
    manager_id: Optional[str],
) -> list[NotificationOut]:
    """Tell the employee, and their manager if any, about a late-arrival deduction."""
    sent = [
        await NotificationService.create_notification(
            cache,
            recipient_id=employee.id,
            title="Late Arrival",
            message=(
                f"You checked in at {record.check_in} on {record.day}; "
                f"{LATE_PENALTY_DAYS} day was deducted from your vacation quota."
            ),
        )
    ]
    if manager_id:
        sent.append(
            await NotificationService.create_notification(
                cache,
                recipient_id=manager_id,
                title="Team Member Late Arrival",
                message=(
                    f"{employee.name} checked in late at {record.check_in} on {record.day}."
                ),
            )
        )
    return sent
