"""Leave service layer: submission, approval state machine, leave type administration.

Business logic:
  - Submission checks (category, dates, sick-leave dating, length bounds,
    gender applicability, business days, overlap, remaining quota)
  - PENDING → APPROVED | REJECTED by the direct manager or an ADMIN,
    with exactly one notification per transition
  - Leave type add / update / soft-disable
"""

from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from leaveflow.attendance.workdays import business_days
from leaveflow.cache.sync import SynchronizedCache
from leaveflow.common.constants import (
    DEFAULT_LEAVE_TYPES_BY_ID,
    MAX_EMPLOYEE_NAME_LENGTH,
    MAX_MANAGER_COMMENT_LENGTH,
    MAX_REASON_LENGTH,
    REVIEW_OUTCOMES,
    SICK,
    STANDARD_LEAVE_TYPE_IDS,
    Applicability,
    GenderType,
    LeaveStatus,
)
from leaveflow.common.exceptions import (
    AppException,
    ConflictError,
    NotFoundException,
    ValidationException,
)
from leaveflow.common.identifiers import canonical_id, canonical_leave_type_id, is_iso_date
from leaveflow.leave.balance import (
    effective_quota,
    is_enforced,
    nominal_quota,
    overlaps,
    remaining,
    usage,
)
from leaveflow.leave.schemas import LeaveRequestCreate, LeaveRequestOut, LeaveTypeOut
from leaveflow.notifications.service import notify_leave_decision, notify_leave_request

logger = logging.getLogger(__name__)

DateInput = Union[date, str]


def _parse_date(value: DateInput, field: str) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and is_iso_date(value.strip()):
        return date.fromisoformat(value.strip())
    raise ValidationException(field, f"Invalid date: {value!r} (expected YYYY-MM-DD).")


def _applicability(leave_type_id: str, leave_type: Optional[LeaveTypeOut]) -> Applicability:
    if leave_type is not None:
        return leave_type.applicable_to
    standard = DEFAULT_LEAVE_TYPES_BY_ID.get(leave_type_id)
    return Applicability(standard["applicable_to"]) if standard else Applicability.both


def leave_types_for_gender(
    leave_types: Iterable[LeaveTypeOut], gender: GenderType
) -> list[LeaveTypeOut]:
    """Active leave types an employee of ``gender`` may request, by display order."""
    return sorted(
        (lt for lt in leave_types if lt.is_active and lt.applicable_to.applies_to(gender)),
        key=lambda lt: lt.order,
    )


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: requests, approvals, leave types."""

    # ─────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit(
        cache: SynchronizedCache,
        *,
        employee_id: str,
        leave_type_id: str,
        start_date: DateInput,
        end_date: DateInput,
        reason: str,
        today: Optional[date] = None,
    ) -> LeaveRequestOut:
        """Validate and create a PENDING request.

        Raises ``ValidationException`` / ``ConflictError`` before anything is
        written. The employee's manager is notified afterwards; a failed
        notification is logged and does not undo the submission.
        """
        today = today or date.today()
        employee = cache.get_employee(employee_id)
        if employee is None:
            raise NotFoundException("Employee", canonical_id(employee_id))

        type_id = canonical_leave_type_id(leave_type_id)
        leave_type = cache.get_leave_type(type_id)
        known = type_id in STANDARD_LEAVE_TYPE_IDS or (
            leave_type is not None and leave_type.is_active
        )
        if not known:
            raise ValidationException(
                "leave_type_id", f"Unknown or inactive leave type: {leave_type_id!r}."
            )

        start = _parse_date(start_date, "start_date")
        end = _parse_date(end_date, "end_date")
        if start > end:
            raise ValidationException("end_date", "Start date must be on or before end date.")
        if type_id == SICK and (start > today or end > today):
            raise ValidationException(
                "start_date", "Sick leave cannot be requested for future dates."
            )

        reason = (reason or "").strip()
        if not reason:
            raise ValidationException("reason", "A reason is required.")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationException(
                "reason", f"Reason must be at most {MAX_REASON_LENGTH} characters."
            )

        if not _applicability(type_id, leave_type).applies_to(employee.gender):
            raise ValidationException(
                "leave_type_id", f"Leave type {type_id} does not apply to this employee."
            )

        holidays = cache.get_holidays()
        days = business_days(start, end, holidays)
        if days == 0:
            raise ValidationException(
                "start_date", "The selected range contains no working days."
            )

        requests = cache.get_leave_requests()
        own = [r for r in requests if r.employee_id == employee.id]
        if overlaps(start, end, own):
            raise ConflictError(
                "start_date", "The dates overlap an existing pending or approved request."
            )

        leave_types = cache.get_leave_types()
        if is_enforced(type_id, nominal_quota(employee, type_id, leave_types)):
            quota = effective_quota(employee, type_id, leave_types, today)
            left = remaining(quota, usage(requests, employee.id, type_id, start.year, holidays))
            if days > left:
                logger.info(
                    "Rejecting %s request of %s: %d day(s) asked, %s left",
                    type_id, employee.id, days, left,
                )
                raise ConflictError("leave_type_id", "remaining quota insufficient")

        payload = LeaveRequestCreate(
            employee_id=employee.id,
            employee_name=employee.name[:MAX_EMPLOYEE_NAME_LENGTH],
            leave_type_id=type_id,
            start_date=start,
            end_date=end,
            reason=reason,
        )
        created = await cache.submit_leave_request(payload)
        logger.info(
            "Leave request %s submitted by %s (%s, %d day(s))",
            created.id, employee.id, type_id, days,
        )

        if employee.manager_id:
            try:
                await notify_leave_request(cache, created, employee.manager_id)
            except AppException as exc:
                logger.warning("Manager notification for %s failed: %s", created.id, exc)
        return created

    # ─────────────────────────────────────────────────────────────────
    # Approval state machine
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def transition(
        cache: SynchronizedCache,
        request_id: str,
        new_status: Union[LeaveStatus, str],
        comment: Optional[str],
        acting_id: str,
    ) -> Optional[LeaveRequestOut]:
        """Move a PENDING request to APPROVED or REJECTED.

        Every failed precondition is a logged no-op returning ``None``.
        """
        try:
            status = LeaveStatus(str(getattr(new_status, "value", new_status)).strip().upper())
        except ValueError:
            logger.warning("Transition of %s refused: unknown status %r", request_id, new_status)
            return None
        if status not in REVIEW_OUTCOMES:
            logger.warning(
                "Transition of %s refused: %s is not a review outcome", request_id, status.value
            )
            return None

        request = cache.get_leave_request(request_id)
        if request is None:
            logger.warning("Transition refused: leave request %s not found", request_id)
            return None
        if request.status is not LeaveStatus.pending:
            logger.warning(
                "Transition of %s refused: already %s", request_id, request.status.value
            )
            return None

        actor_id = canonical_id(acting_id)
        actor = cache.get_employee(actor_id)
        employee = cache.get_employee(request.employee_id)
        is_admin = actor is not None and actor.is_admin
        is_manager = employee is not None and employee.manager_id == actor_id
        if not (is_admin or is_manager):
            logger.warning(
                "Transition of %s refused: %s is neither ADMIN nor the direct manager of %s",
                request_id, actor_id, request.employee_id,
            )
            return None

        trimmed = (comment or "").strip()[:MAX_MANAGER_COMMENT_LENGTH] or None
        updated = await cache.update_leave_request_status(request.id, status, trimmed, actor_id)
        logger.info("Leave request %s %s by %s", updated.id, status.value, actor_id)

        try:
            await notify_leave_decision(cache, updated)
        except AppException as exc:
            logger.warning("Decision notification for %s failed: %s", updated.id, exc)
        return updated

    @staticmethod
    async def approve(
        cache: SynchronizedCache, request_id: str, acting_id: str, comment: Optional[str] = None
    ) -> Optional[LeaveRequestOut]:
        return await LeaveService.transition(
            cache, request_id, LeaveStatus.approved, comment, acting_id
        )

    @staticmethod
    async def reject(
        cache: SynchronizedCache, request_id: str, acting_id: str, comment: Optional[str] = None
    ) -> Optional[LeaveRequestOut]:
        return await LeaveService.transition(
            cache, request_id, LeaveStatus.rejected, comment, acting_id
        )

    # ─────────────────────────────────────────────────────────────────
    # Leave types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def add_leave_type(
        cache: SynchronizedCache,
        *,
        label: str,
        applicable_to: Applicability = Applicability.both,
        default_quota: Decimal = Decimal("0"),
    ) -> LeaveTypeOut:
        label = (label or "").strip()
        if not label:
            raise ValidationException("label", "Leave type label is required.")
        if default_quota < 0:
            raise ValidationException("default_quota", "Default quota cannot be negative.")

        current = cache.get_leave_types()
        new_type = LeaveTypeOut(
            id=f"LT{int(time.time() * 1000)}",
            label=label,
            applicable_to=applicable_to,
            default_quota=default_quota,
            order=max((lt.order for lt in current), default=0) + 1,
            is_active=True,
        )
        await cache.replace_leave_types([*current, new_type])
        logger.info("Added leave type %s (%s)", new_type.id, label)
        return cache.get_leave_type(new_type.id) or new_type

    @staticmethod
    async def update_leave_type(
        cache: SynchronizedCache,
        leave_type_id: str,
        **changes: Any,
    ) -> LeaveTypeOut:
        allowed = {"label", "applicable_to", "default_quota", "order", "is_active"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationException(sorted(unknown)[0], "Field cannot be changed.")
        key = canonical_leave_type_id(leave_type_id)
        current = cache.get_leave_types()
        if not any(lt.id == key for lt in current):
            raise NotFoundException("Leave type", key)

        updated_list = [
            LeaveTypeOut.model_validate({**lt.model_dump(), **changes}) if lt.id == key else lt
            for lt in current
        ]
        await cache.replace_leave_types(updated_list)
        return cache.get_leave_type(key) or next(lt for lt in updated_list if lt.id == key)

    @staticmethod
    async def disable_leave_type(cache: SynchronizedCache, leave_type_id: str) -> LeaveTypeOut:
        """Soft-delete: the type stays for history but can no longer be requested."""
        return await LeaveService.update_leave_type(cache, leave_type_id, is_active=False)
