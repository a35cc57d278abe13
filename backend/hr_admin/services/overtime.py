# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from hr_admin.exceptions import AppError, NotFound, OverlappingRequest, ValidationError
from hr_admin.models.base import as_utc
from hr_admin.models.enums import AuditAction, AuditEntityType, CompTimeTransactionType, RequestStatus
from hr_admin.models.overtime import OvertimeRequest
from hr_admin.schemas.overtime import OvertimeListResponse, OvertimeResponse, OvertimeStatsResponse
from hr_admin.services.audit import model_to_audit_dict, write_audit_log
from hr_admin.services.comp_time import _apply_transaction, hours_to_minutes
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
    from hr_admin.schemas.overtime import CreateOvertimePayload, UpdateOvertimePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_overtime_response(overtime: OvertimeRequest) -> OvertimeResponse:
    """Map an overtime request model to its response schema."""
    return OvertimeResponse(
        id=overtime.id,
        employee_id=overtime.employee_id,
        work_date=overtime.work_date,
        start_at=as_utc(overtime.start_at),
        end_at=as_utc(overtime.end_at),
        planned_hours=overtime.planned_hours,
        approved_hours=overtime.approved_hours,
        reason=overtime.reason,
        status=RequestStatus(overtime.status),
        approver_employee_id=overtime.approver_employee_id,
        decision_note=overtime.decision_note,
        decided_at=as_utc(overtime.decided_at) if overtime.decided_at is not None else None,
        convert_to_comp_time=overtime.convert_to_comp_time,
        created_at=overtime.created_at,
    )


async def _get_overtime_or_404(session: AsyncSession, overtime_id: uuid.UUID) -> OvertimeRequest:
    overtime = await session.get(OvertimeRequest, overtime_id)
    if overtime is None:
        raise NotFound("Overtime request not found")
    return overtime


def _work_date_start(work_date: date) -> datetime:
    """Comp time earned by overtime takes effect at the start of the work day (UTC)."""
    return datetime.combine(work_date, time.min, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_overtime(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateOvertimePayload,
) -> OvertimeResponse:
    """File a pending overtime request after checking it does not overlap another one."""
    ensure_owner_or_admin(auth, payload.employee_id, "file")

    overtime = OvertimeRequest(
        employee_id=payload.employee_id,
        work_date=payload.work_date,
        start_at=payload.start_at,
        end_at=payload.end_at,
        planned_hours=payload.planned_hours,
        reason=payload.reason,
        convert_to_comp_time=payload.convert_to_comp_time,
        status=RequestStatus.PENDING.value,
    )
    await lock_employee(session, payload.employee_id)
    session.add(overtime)
    await session.flush()

    # The row is written first so that a concurrent filing either sees it or waits on it.
    try:
        await check_overlap(
            session,
            OvertimeRequest,
            payload.employee_id,
            payload.start_at,
            payload.end_at,
            exclude_request_id=overtime.id,
        )
    except OverlappingRequest:
        await session.rollback()
        raise

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.OVERTIME_REQUEST,
        entity_id=overtime.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(overtime),
    )

    await session.commit()
    await session.refresh(overtime)
    return _build_overtime_response(overtime)


async def update_overtime(
    session: AsyncSession,
    auth: AuthContext,
    overtime_id: uuid.UUID,
    payload: UpdateOvertimePayload,
) -> OvertimeResponse:
    overtime = await _get_overtime_or_404(session, overtime_id)
    ensure_owner_or_admin(auth, overtime.employee_id, "update")
    ensure_pending(overtime.status, "overtime", "updated")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    start_at = changes.get("start_at", as_utc(overtime.start_at))
    end_at = changes.get("end_at", as_utc(overtime.end_at))
    if end_at <= start_at:
        raise ValidationError("end_at must be after start_at")

    await lock_employee(session, overtime.employee_id)
    before_dict = model_to_audit_dict(overtime)
    for key, value in changes.items():
        setattr(overtime, key, value)
    await session.flush()

    try:
        await check_overlap(
            session, OvertimeRequest, overtime.employee_id, start_at, end_at, exclude_request_id=overtime.id
        )
    except OverlappingRequest:
        await session.rollback()
        raise

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.OVERTIME_REQUEST,
        entity_id=overtime.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(overtime),
    )

    await session.commit()
    await session.refresh(overtime)
    return _build_overtime_response(overtime)


async def review_overtime(
    session: AsyncSession,
    overtime_request_id: uuid.UUID,
    approver_employee_id: uuid.UUID,
    approve: bool,
    decision_note: str | None = None,
    approved_hours: Decimal | None = None,
    convert_to_comp_time: bool | None = None,
) -> OvertimeResponse:
    """Approve or reject a pending overtime request.

    Flow:
    1. Validate approved hours against planned hours (approve only).
    2. Compare-and-swap the status out of pending.
    3. If approved and conversion was requested (at filing or now), earn
       round(approved_hours * 60) minutes dated on the work day.
    4. Audit log, commit.
    """
    overtime = await _get_overtime_or_404(session, overtime_request_id)

    if approve:
        if approved_hours is None:
            raise ValidationError("approved_hours is required when approving overtime")
        if approved_hours < 0:
            raise ValidationError("approved_hours cannot be negative")
        if approved_hours > overtime.planned_hours:
            raise ValidationError(
                f"approved_hours ({approved_hours}) cannot exceed planned_hours ({overtime.planned_hours})"
            )

    ensure_pending(overtime.status, "overtime", "reviewed")

    new_status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    converts = overtime.convert_to_comp_time or bool(convert_to_comp_time)
    before_dict = model_to_audit_dict(overtime)
    employee_id = overtime.employee_id
    work_date = overtime.work_date

    values: dict[str, object] = {
        "approver_employee_id": approver_employee_id,
        "decision_note": decision_note,
        "decided_at": datetime.now(UTC),
    }
    if approve:
        values["approved_hours"] = approved_hours
        # The stored flag records whether the approval earned comp time.
        values["convert_to_comp_time"] = converts
    elif convert_to_comp_time is not None:
        values["convert_to_comp_time"] = convert_to_comp_time

    try:
        await transition_from_pending(session, OvertimeRequest, overtime.id, new_status, **values)

        if approve and converts and approved_hours is not None:
            earned_minutes = hours_to_minutes(approved_hours)
            if earned_minutes > 0:
                await _apply_transaction(
                    session,
                    employee_id=employee_id,
                    txn_type=CompTimeTransactionType.EARN,
                    minutes=earned_minutes,
                    occurred_at=_work_date_start(work_date),
                    overtime_request_id=overtime_request_id,
                    reason=f"Overtime approved on {work_date.isoformat()}",
                )
    except AppError:
        await session.rollback()
        raise

    await session.refresh(overtime)
    await write_audit_log(
        session,
        actor_id=approver_employee_id,
        entity_type=AuditEntityType.OVERTIME_REQUEST,
        entity_id=overtime.id,
        action=AuditAction.APPROVE if approve else AuditAction.REJECT,
        before_json=before_dict,
        after_json=model_to_audit_dict(overtime),
    )

    await session.commit()
    logger.info("Overtime request %s %s by %s", overtime.id, new_status.value, approver_employee_id)
    return _build_overtime_response(overtime)


async def cancel_overtime(
    session: AsyncSession,
    auth: AuthContext,
    overtime_id: uuid.UUID,
    decision_note: str | None = None,
) -> OvertimeResponse:
    overtime = await _get_overtime_or_404(session, overtime_id)
    ensure_owner_or_admin(auth, overtime.employee_id, "cancel")
    ensure_pending(overtime.status, "overtime", "cancelled")

    before_dict = model_to_audit_dict(overtime)
    await transition_from_pending(
        session,
        OvertimeRequest,
        overtime.id,
        RequestStatus.CANCELLED,
        approver_employee_id=auth.user_id,
        decision_note=decision_note,
        decided_at=datetime.now(UTC),
    )
    await session.refresh(overtime)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.OVERTIME_REQUEST,
        entity_id=overtime.id,
        action=AuditAction.CANCEL,
        before_json=before_dict,
        after_json=model_to_audit_dict(overtime),
    )
    await session.commit()
    return _build_overtime_response(overtime)


async def get_overtime(session: AsyncSession, overtime_id: uuid.UUID) -> OvertimeResponse:
    overtime = await _get_overtime_or_404(session, overtime_id)
    return _build_overtime_response(overtime)


def _overtime_filters(
    employee_id: uuid.UUID | None,
    status_filter: RequestStatus | None,
    start_from: datetime | None,
    end_to: datetime | None,
) -> list:
    filters = []
    if employee_id is not None:
        filters.append(col(OvertimeRequest.employee_id) == employee_id)
    if status_filter is not None:
        filters.append(col(OvertimeRequest.status) == status_filter.value)
    if start_from is not None:
        filters.append(col(OvertimeRequest.start_at) >= as_utc(start_from))
    if end_to is not None:
        filters.append(col(OvertimeRequest.end_at) <= as_utc(end_to))
    return filters


async def list_overtime(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    status_filter: RequestStatus | None = None,
    start_from: datetime | None = None,
    end_to: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> OvertimeListResponse:
    """List overtime requests with optional filters, latest start first."""
    filters = _overtime_filters(employee_id, status_filter, start_from, end_to)

    count_result = await session.execute(select(func.count()).select_from(OvertimeRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(OvertimeRequest)
        .where(*filters)
        .order_by(col(OvertimeRequest.start_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return OvertimeListResponse(
        items=[_build_overtime_response(r) for r in result.scalars().all()],
        total=total,
    )


async def overtime_stats(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    status_filter: RequestStatus | None = None,
    work_date_from: date | None = None,
    work_date_to: date | None = None,
) -> OvertimeStatsResponse:
    """Planned and approved hour totals over work dates."""
    filters = _overtime_filters(employee_id, status_filter, None, None)
    if work_date_from is not None:
        filters.append(col(OvertimeRequest.work_date) >= work_date_from)
    if work_date_to is not None:
        filters.append(col(OvertimeRequest.work_date) <= work_date_to)

    result = await session.execute(
        select(
            func.coalesce(func.sum(col(OvertimeRequest.planned_hours)), 0),
            func.coalesce(func.sum(col(OvertimeRequest.approved_hours)), 0),
        )
        .select_from(OvertimeRequest)
        .where(*filters)
    )
    planned, approved = result.one()
    return OvertimeStatsResponse(
        total_planned_hours=Decimal(str(planned)),
        total_approved_hours=Decimal(str(approved)),
    )
