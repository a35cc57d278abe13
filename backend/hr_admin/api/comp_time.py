# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Query, status

from hr_admin.api.deps import AdminDep, AuthDep
from hr_admin.db import SessionDep
from hr_admin.exceptions import NotFound
from hr_admin.models.enums import CompTimeTransactionType
from hr_admin.schemas.comp_time import (
    BalanceResponse,
    CreateTransactionPayload,
    ReconciliationReport,
    TransactionListResponse,
    TransactionResult,
)
from hr_admin.services import comp_time as comp_time_service
from hr_admin.services.workflow import ensure_owner_or_admin

comp_time_router = APIRouter(prefix="/comp-time", tags=["comp-time"])


@comp_time_router.get("/balances/{employee_id}", response_model=BalanceResponse)
async def get_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    """Get an employee's comp-time balance."""
    ensure_owner_or_admin(auth, employee_id, "view")
    balance = await comp_time_service.get_balance(session, employee_id)
    if balance is None:
        raise NotFound("No comp-time balance recorded for this employee")
    return balance


@comp_time_router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    txn_type: CompTimeTransactionType | None = Query(default=None, alias="type"),
    occurred_from: datetime | None = Query(default=None, alias="from"),
    occurred_to: datetime | None = Query(default=None, alias="to"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> TransactionListResponse:
    """List comp-time ledger entries. Employees only see their own."""
    if not auth.is_admin:
        employee_id = auth.user_id
    return await comp_time_service.list_transactions(
        session, employee_id, txn_type, occurred_from, occurred_to, offset, limit
    )


@comp_time_router.post("/transactions", response_model=TransactionResult, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: CreateTransactionPayload,
    session: SessionDep,
    auth: AdminDep,
) -> TransactionResult:
    """Record a comp-time transaction directly (admin only)."""
    return await comp_time_service.record_transaction(
        session,
        payload.employee_id,
        payload.type,
        payload.minutes,
        payload.occurred_at,
        payload.reason,
        payload.source_request_id,
        actor_id=auth.user_id,
    )


@comp_time_router.get("/reconciliation", response_model=ReconciliationReport)
async def reconcile(
    session: SessionDep,
    _auth: AdminDep,
) -> ReconciliationReport:
    """Compare stored balances with ledger sums (admin only)."""
    return await comp_time_service.reconcile_balances(session)
