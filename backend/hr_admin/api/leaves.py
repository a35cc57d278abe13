# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Query, status

from hr_admin.api.deps import AdminDep, AuthDep
from hr_admin.db import SessionDep
from hr_admin.models.enums import RequestStatus
from hr_admin.schemas.leave import (
    CancelPayload,
    CreateLeavePayload,
    CreateLeaveTypePayload,
    LeaveListResponse,
    LeaveResponse,
    LeaveStatsResponse,
    LeaveTypeResponse,
    ReviewLeavePayload,
    UpdateLeavePayload,
)
from hr_admin.services import leave as leave_service
from hr_admin.services.workflow import ensure_owner_or_admin

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave"])

leaves_router = APIRouter(prefix="/leaves", tags=["leave"])


@leave_types_router.get("", response_model=list[LeaveTypeResponse])
async def list_leave_types(session: SessionDep, _auth: AuthDep) -> list[LeaveTypeResponse]:
    """List the leave type catalogue."""
    return await leave_service.list_leave_types(session)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypePayload,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveTypeResponse:
    """Add a leave type (admin only)."""
    return await leave_service.create_leave_type(session, auth, payload)


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def create_leave(
    payload: CreateLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """File a new leave request."""
    return await leave_service.create_leave(session, auth, payload)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    start_from: datetime | None = Query(default=None, alias="from"),
    end_to: datetime | None = Query(default=None, alias="to"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveListResponse:
    """List leave requests. Employees only see their own."""
    if not auth.is_admin:
        employee_id = auth.user_id
    return await leave_service.list_leaves(session, employee_id, status_filter, start_from, end_to, offset, limit)


@leaves_router.get("/stats", response_model=LeaveStatsResponse)
async def leave_stats(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    start_from: datetime | None = Query(default=None, alias="from"),
    end_to: datetime | None = Query(default=None, alias="to"),
) -> LeaveStatsResponse:
    """Total leave hours matching the filters."""
    if not auth.is_admin:
        employee_id = auth.user_id
    return await leave_service.leave_stats(session, employee_id, status_filter, start_from, end_to)


@leaves_router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Get a single leave request. Employees may only read their own."""
    leave = await leave_service.get_leave(session, leave_id)
    ensure_owner_or_admin(auth, leave.employee_id, "view")
    return leave


@leaves_router.patch("/{leave_id}", response_model=LeaveResponse)
async def update_leave(
    leave_id: uuid.UUID,
    payload: UpdateLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Edit a pending leave request."""
    return await leave_service.update_leave(session, auth, leave_id, payload)


@leaves_router.post("/{leave_id}/review", response_model=LeaveResponse)
async def review_leave(
    leave_id: uuid.UUID,
    payload: ReviewLeavePayload,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveResponse:
    """Approve or reject a pending leave request (admin only)."""
    return await leave_service.review_leave(session, leave_id, auth.user_id, payload.approve, payload.decision_note)


@leaves_router.post("/{leave_id}/cancel", response_model=LeaveResponse)
async def cancel_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CancelPayload | None = None,
) -> LeaveResponse:
    """Cancel a pending leave request."""
    return await leave_service.cancel_leave(session, auth, leave_id, payload.decision_note if payload else None)
