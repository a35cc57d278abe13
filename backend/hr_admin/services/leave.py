# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hr_admin.config import get_settings
from hr_admin.exceptions import AppError, InsufficientBalance, NotFound, OverlappingRequest, ValidationError
from hr_admin.models.base import as_utc
from hr_admin.models.enums import (
    AuditAction,
    AuditEntityType,
    CompTimeTransactionType,
    FundingSource,
    LeaveTypeCategory,
    RequestStatus,
)
from hr_admin.models.leave import LeaveRequest, LeaveType
from hr_admin.schemas.leave import (
    LeaveListResponse,
    LeaveResponse,
    LeaveStatsResponse,
    LeaveTypeResponse,
)
from hr_admin.services.audit import model_to_audit_dict, write_audit_log
from hr_admin.services.comp_time import _apply_transaction, get_available_minutes, hours_to_minutes
from hr_admin.services.workflow import (
    check_overlap,
    ensure_owner_or_admin,
    ensure_pending,
    lock_employee,
    transition_from_pending,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_admin.schemas.auth import AuthContext
    from hr_admin.schemas.leave import CreateLeavePayload, CreateLeaveTypePayload, UpdateLeavePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        code=leave_type.code,
        name=leave_type.name,
        category=LeaveTypeCategory(leave_type.category),
        with_pay=leave_type.with_pay,
        requires_proof=leave_type.requires_proof,
        funding_source=FundingSource(leave_type.funding_source),
    )


def _build_leave_response(leave: LeaveRequest) -> LeaveResponse:
    """Map a leave request model to its response schema."""
    return LeaveResponse(
        id=leave.id,
        employee_id=leave.employee_id,
        leave_type_id=leave.leave_type_id,
        start_at=as_utc(leave.start_at),
        end_at=as_utc(leave.end_at),
        hours=leave.hours,
        reason=leave.reason,
        status=RequestStatus(leave.status),
        approver_employee_id=leave.approver_employee_id,
        decision_note=leave.decision_note,
        decided_at=as_utc(leave.decided_at) if leave.decided_at is not None else None,
        created_at=leave.created_at,
    )


async def _get_leave_or_404(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
    leave = await session.get(LeaveRequest, leave_id)
    if leave is None:
        raise NotFound("Leave request not found")
    return leave


async def _get_leave_type_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    leave_type = await session.get(LeaveType, leave_type_id)
    if leave_type is None:
        raise NotFound("Leave type not found")
    return leave_type


async def _ensure_comp_time_covers(session: AsyncSession, employee_id: uuid.UUID, hours: Decimal) -> int:
    """Check the employee's comp-time balance covers ``hours``. Returns the minutes needed."""
    needed = hours_to_minutes(hours)
    if needed <= 0:
        raise ValidationError("Invalid hours for compensatory time leave")
    available = await get_available_minutes(session, employee_id)
    if available < needed:
        raise InsufficientBalance(
            f"Insufficient compensatory time balance: {available} minutes available, {needed} requested"
        )
    return needed


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


async def list_leave_types(session: AsyncSession) -> list[LeaveTypeResponse]:
    result = await session.execute(select(LeaveType).order_by(col(LeaveType.code)))
    return [_build_leave_type_response(t) for t in result.scalars().all()]


async def create_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveTypePayload,
) -> LeaveTypeResponse:
    """Add a leave type. The funding source is fixed here, once, from the type code."""
    funding_source = payload.funding_source
    if funding_source is None:
        is_comp = payload.code == get_settings().comp_time_leave_code
        funding_source = FundingSource.COMP_TIME if is_comp else FundingSource.STANDARD

    leave_type = LeaveType(
        code=payload.code,
        name=payload.name,
        category=payload.category.value,
        with_pay=payload.with_pay,
        requires_proof=payload.requires_proof,
        funding_source=funding_source.value,
    )
    session.add(leave_type)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError(f"Leave type code {payload.code!r} already exists", status_code=409) from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_TYPE,
        entity_id=leave_type.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave_type),
    )
    await session.commit()
    return _build_leave_type_response(leave_type)


# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------


async def create_leave(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeavePayload,
) -> LeaveResponse:
    """File a pending leave request.

    Comp-time funded leave is checked against the current balance, but no
    minutes are held: the balance is only debited on approval.
    """
    ensure_owner_or_admin(auth, payload.employee_id, "file")
    leave_type = await _get_leave_type_or_404(session, payload.leave_type_id)

    if leave_type.draws_comp_time:
        await _ensure_comp_time_covers(session, payload.employee_id, payload.hours)

    leave = LeaveRequest(
        employee_id=payload.employee_id,
        leave_type_id=payload.leave_type_id,
        start_at=payload.start_at,
        end_at=payload.end_at,
        hours=payload.hours,
        reason=payload.reason,
        status=RequestStatus.PENDING.value,
    )
    await lock_employee(session, payload.employee_id)
    session.add(leave)
    await session.flush()

    # The row is written first so that a concurrent filing either sees it or waits on it.
    try:
        await check_overlap(
            session, LeaveRequest, payload.employee_id, payload.start_at, payload.end_at, exclude_request_id=leave.id
        )
    except OverlappingRequest:
        await session.rollback()
        raise

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave),
    )

    await session.commit()
    await session.refresh(leave)
    return _build_leave_response(leave)


async def update_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: UpdateLeavePayload,
) -> LeaveResponse:
    """Edit a pending leave request.

    The comp-time balance is not re-checked here; review re-validates it.
    """
    leave = await _get_leave_or_404(session, leave_id)
    ensure_owner_or_admin(auth, leave.employee_id, "update")
    ensure_pending(leave.status, "leave", "updated")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    start_at = changes.get("start_at", as_utc(leave.start_at))
    end_at = changes.get("end_at", as_utc(leave.end_at))
    if end_at <= start_at:
        raise ValidationError("end_at must be after start_at")

    if "leave_type_id" in changes:
        await _get_leave_type_or_404(session, changes["leave_type_id"])

    await lock_employee(session, leave.employee_id)
    before_dict = model_to_audit_dict(leave)
    for key, value in changes.items():
        setattr(leave, key, value)
    await session.flush()

    try:
        await check_overlap(session, LeaveRequest, leave.employee_id, start_at, end_at, exclude_request_id=leave.id)
    except OverlappingRequest:
        await session.rollback()
        raise

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave),
    )

    await session.commit()
    await session.refresh(leave)
    return _build_leave_response(leave)


async def review_leave(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    approver_employee_id: uuid.UUID,
    approve: bool,
    decision_note: str | None = None,
) -> LeaveResponse:
    """Approve or reject a pending leave request.

    Approving comp-time funded leave re-validates the balance and debits it
    in the same transaction as the status change; if the debit fails the
    request stays pending.
    """
    leave = await _get_leave_or_404(session, leave_request_id)
    ensure_pending(leave.status, "leave", "reviewed")
    leave_type = await _get_leave_type_or_404(session, leave.leave_type_id)

    new_status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    spend_minutes: int | None = None
    if approve and leave_type.draws_comp_time:
        spend_minutes = await _ensure_comp_time_covers(session, leave.employee_id, leave.hours)

    before_dict = model_to_audit_dict(leave)
    employee_id = leave.employee_id
    start_at = leave.start_at

    try:
        await transition_from_pending(
            session,
            LeaveRequest,
            leave.id,
            new_status,
            approver_employee_id=approver_employee_id,
            decision_note=decision_note,
            decided_at=datetime.now(UTC),
        )
        if spend_minutes is not None:
            await _apply_transaction(
                session,
                employee_id=employee_id,
                txn_type=CompTimeTransactionType.SPEND,
                minutes=spend_minutes,
                occurred_at=start_at,
                leave_request_id=leave_request_id,
                reason=f"Comp time used for leave on {as_utc(start_at).date().isoformat()}",
            )
    except AppError:
        await session.rollback()
        raise

    await session.refresh(leave)
    await write_audit_log(
        session,
        actor_id=approver_employee_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.APPROVE if approve else AuditAction.REJECT,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave),
    )

    await session.commit()
    logger.info("Leave request %s %s by %s", leave.id, new_status.value, approver_employee_id)
    return _build_leave_response(leave)


async def cancel_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    decision_note: str | None = None,
) -> LeaveResponse:
    """Withdraw a pending leave request. Nothing was debited yet, so nothing is reversed."""
    leave = await _get_leave_or_404(session, leave_id)
    ensure_owner_or_admin(auth, leave.employee_id, "cancel")
    ensure_pending(leave.status, "leave", "cancelled")

    before_dict = model_to_audit_dict(leave)
    await transition_from_pending(
        session,
        LeaveRequest,
        leave.id,
        RequestStatus.CANCELLED,
        approver_employee_id=auth.user_id,
        decision_note=decision_note,
        decided_at=datetime.now(UTC),
    )
    await session.refresh(leave)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.CANCEL,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave),
    )
    await session.commit()
    return _build_leave_response(leave)


async def get_leave(session: AsyncSession, leave_id: uuid.UUID) -> LeaveResponse:
    leave = await _get_leave_or_404(session, leave_id)
    return _build_leave_response(leave)


def _leave_filters(
    employee_id: uuid.UUID | None,
    status_filter: RequestStatus | None,
    start_from: datetime | None,
    end_to: datetime | None,
) -> list:
    filters = []
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if start_from is not None:
        filters.append(col(LeaveRequest.start_at) >= as_utc(start_from))
    if end_to is not None:
        filters.append(col(LeaveRequest.end_at) <= as_utc(end_to))
    return filters


async def list_leaves(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    status_filter: RequestStatus | None = None,
    start_from: datetime | None = None,
    end_to: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveListResponse:
    """List leave requests with optional filters, latest start first."""
    filters = _leave_filters(employee_id, status_filter, start_from, end_to)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest).where(*filters).order_by(col(LeaveRequest.start_at).desc()).offset(offset).limit(limit)
    )
    return LeaveListResponse(
        items=[_build_leave_response(r) for r in result.scalars().all()],
        total=total,
    )


async def leave_stats(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    status_filter: RequestStatus | None = None,
    start_from: datetime | None = None,
    end_to: datetime | None = None,
) -> LeaveStatsResponse:
    """Total leave hours matching the filters."""
    filters = _leave_filters(employee_id, status_filter, start_from, end_to)
    result = await session.execute(
        select(func.coalesce(func.sum(col(LeaveRequest.hours)), 0)).select_from(LeaveRequest).where(*filters)
    )
    total = result.scalar_one()
    return LeaveStatsResponse(total_hours=Decimal(str(total)))
