# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Query, status

from hr_admin.api.deps import AdminDep, AuthDep
from hr_admin.db import SessionDep
from hr_admin.models.enums import RequestStatus
from hr_admin.schemas.leave import CancelPayload
from hr_admin.schemas.overtime import (
    CreateOvertimePayload,
    OvertimeListResponse,
    OvertimeResponse,
    OvertimeStatsResponse,
    ReviewOvertimePayload,
    UpdateOvertimePayload,
)
from hr_admin.services import overtime as overtime_service
from hr_admin.services.workflow import ensure_owner_or_admin

overtime_router = APIRouter(prefix="/overtime", tags=["overtime"])


@overtime_router.post("", response_model=OvertimeResponse, status_code=status.HTTP_201_CREATED)
async def create_overtime(
    payload: CreateOvertimePayload,
    session: SessionDep,
    auth: AuthDep,
) -> OvertimeResponse:
    """File a new overtime request."""
    return await overtime_service.create_overtime(session, auth, payload)


@overtime_router.get("", response_model=OvertimeListResponse)
async def list_overtime(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    start_from: datetime | None = Query(default=None, alias="from"),
    end_to: datetime | None = Query(default=None, alias="to"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> OvertimeListResponse:
    """List overtime requests. Employees only see their own."""
    if not auth.is_admin:
        employee_id = auth.user_id
    return await overtime_service.list_overtime(
        session, employee_id, status_filter, start_from, end_to, offset, limit
    )


@overtime_router.get("/stats", response_model=OvertimeStatsResponse)
async def overtime_stats(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    work_date_from: date | None = Query(default=None, alias="from"),
    work_date_to: date | None = Query(default=None, alias="to"),
) -> OvertimeStatsResponse:
    """Planned and approved overtime hour totals."""
    if not auth.is_admin:
        employee_id = auth.user_id
    return await overtime_service.overtime_stats(session, employee_id, status_filter, work_date_from, work_date_to)


@overtime_router.get("/{overtime_id}", response_model=OvertimeResponse)
async def get_overtime(
    overtime_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> OvertimeResponse:
    """Get a single overtime request. Employees may only read their own."""
    overtime = await overtime_service.get_overtime(session, overtime_id)
    ensure_owner_or_admin(auth, overtime.employee_id, "view")
    return overtime


@overtime_router.patch("/{overtime_id}", response_model=OvertimeResponse)
async def update_overtime(
    overtime_id: uuid.UUID,
    payload: UpdateOvertimePayload,
    session: SessionDep,
    auth: AuthDep,
) -> OvertimeResponse:
    """Edit a pending overtime request."""
    return await overtime_service.update_overtime(session, auth, overtime_id, payload)


@overtime_router.post("/{overtime_id}/review", response_model=OvertimeResponse)
async def review_overtime(
    overtime_id: uuid.UUID,
    payload: ReviewOvertimePayload,
    session: SessionDep,
    auth: AdminDep,
) -> OvertimeResponse:
    """Approve or reject a pending overtime request (admin only)."""
    return await overtime_service.review_overtime(
        session,
        overtime_id,
        auth.user_id,
        payload.approve,
        payload.decision_note,
        payload.approved_hours,
        payload.convert_to_comp_time,
    )


@overtime_router.post("/{overtime_id}/cancel", response_model=OvertimeResponse)
async def cancel_overtime(
    overtime_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CancelPayload | None = None,
) -> OvertimeResponse:
    """Cancel a pending overtime request."""
    return await overtime_service.cancel_overtime(
        session, auth, overtime_id, payload.decision_note if payload else None
    )
