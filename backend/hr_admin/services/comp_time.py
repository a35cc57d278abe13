from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hr_admin.exceptions import (
    AppError,
    ConcurrencyConflict,
    InsufficientBalance,
    InvalidState,
    NotFound,
    ValidationError,
)
from hr_admin.models.base import as_utc
from hr_admin.models.comp_time import CompTimeBalance, CompTimeTransaction
from hr_admin.models.enums import AuditAction, AuditEntityType, CompTimeTransactionType, RequestStatus
from hr_admin.models.leave import LeaveRequest
from hr_admin.models.overtime import OvertimeRequest
from hr_admin.schemas.comp_time import (
    BalanceDrift,
    BalanceResponse,
    ReconciliationReport,
    TransactionListResponse,
    TransactionResponse,
    TransactionResult,
)
from hr_admin.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Signed effect of a stored ledger row on the balance.
_SIGNED_MINUTES = case(
    (col(CompTimeTransaction.type) == CompTimeTransactionType.EARN.value, col(CompTimeTransaction.minutes)),
    (col(CompTimeTransaction.type) == CompTimeTransactionType.SPEND.value, -col(CompTimeTransaction.minutes)),
    else_=col(CompTimeTransaction.minutes),
)


def hours_to_minutes(hours: Decimal) -> int:
    """Convert fixed-point hours to whole minutes, rounding halves up."""
    return int((Decimal(hours) * 60).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def signed_delta(txn_type: CompTimeTransactionType, minutes: int) -> int:
    """Balance delta of a transaction: earn credits, spend debits, adjust is taken as given."""
    if txn_type == CompTimeTransactionType.EARN:
        return abs(minutes)
    if txn_type == CompTimeTransactionType.SPEND:
        return -abs(minutes)
    return minutes


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_transaction_response(entry: CompTimeTransaction) -> TransactionResponse:
    """Map a ledger row to its response schema."""
    txn_type = CompTimeTransactionType(entry.type)
    return TransactionResponse(
        id=entry.id,
        employee_id=entry.employee_id,
        type=txn_type,
        minutes=entry.minutes,
        signed_minutes=signed_delta(txn_type, entry.minutes),
        occurred_at=as_utc(entry.occurred_at),
        overtime_request_id=entry.overtime_request_id,
        leave_request_id=entry.leave_request_id,
        reason=entry.reason,
        created_at=entry.created_at,
    )


def _build_balance_response(balance: CompTimeBalance) -> BalanceResponse:
    return BalanceResponse(
        employee_id=balance.employee_id,
        balance_minutes=balance.balance_minutes,
        updated_at=balance.updated_at,
    )


def _validate_minutes(txn_type: CompTimeTransactionType, minutes: int) -> None:
    if txn_type == CompTimeTransactionType.ADJUST:
        if minutes == 0:
            raise ValidationError("Adjustment minutes must be non-zero")
    elif minutes <= 0:
        raise ValidationError(f"{txn_type.value} minutes must be positive")


async def _get_balance_for_update(session: AsyncSession, employee_id: uuid.UUID) -> CompTimeBalance | None:
    """Fetch the balance row with a FOR UPDATE lock, refreshing any cached copy."""
    result = await session.execute(
        select(CompTimeBalance)
        .where(col(CompTimeBalance.employee_id) == employee_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_available_minutes(session: AsyncSession, employee_id: uuid.UUID) -> int:
    """Current balance in minutes, zero when the employee has no balance row yet."""
    result = await session.execute(
        select(col(CompTimeBalance.balance_minutes)).where(col(CompTimeBalance.employee_id) == employee_id)
    )
    return result.scalar_one_or_none() or 0


async def _apply_transaction(
    session: AsyncSession,
    *,
    employee_id: uuid.UUID,
    txn_type: CompTimeTransactionType,
    minutes: int,
    occurred_at: datetime,
    reason: str | None = None,
    overtime_request_id: uuid.UUID | None = None,
    leave_request_id: uuid.UUID | None = None,
) -> tuple[CompTimeTransaction, CompTimeBalance]:
    """Write one ledger row and move the balance, inside the caller's transaction.

    Flushes but never commits, so a review can bind its status change to the
    same unit of work. The balance write is guarded in SQL so that a writer
    holding a stale read cannot push the balance below zero.
    """
    _validate_minutes(txn_type, minutes)
    delta = signed_delta(txn_type, minutes)

    balance = await _get_balance_for_update(session, employee_id)

    if balance is None:
        if delta < 0:
            raise InsufficientBalance
        balance = CompTimeBalance(employee_id=employee_id, balance_minutes=delta)
        session.add(balance)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            raise ConcurrencyConflict("Balance was created concurrently; retry the operation") from None
    else:
        if balance.balance_minutes + delta < 0:
            raise InsufficientBalance
        result = await session.execute(
            update(CompTimeBalance)
            .where(
                col(CompTimeBalance.id) == balance.id,
                col(CompTimeBalance.balance_minutes) + delta >= 0,
            )
            .values(
                balance_minutes=col(CompTimeBalance.balance_minutes) + delta,
                version=col(CompTimeBalance.version) + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            # Another writer drained the balance after our read.
            raise InsufficientBalance
        await session.refresh(balance)

    entry = CompTimeTransaction(
        employee_id=employee_id,
        type=txn_type.value,
        minutes=abs(minutes) if txn_type != CompTimeTransactionType.ADJUST else minutes,
        occurred_at=occurred_at,
        overtime_request_id=overtime_request_id,
        leave_request_id=leave_request_id,
        reason=reason,
    )
    session.add(entry)
    await session.flush()

    logger.info(
        "comp-time %s of %d minutes for employee %s, balance now %d",
        txn_type.value,
        minutes,
        employee_id,
        balance.balance_minutes,
    )
    return entry, balance


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(session: AsyncSession, employee_id: uuid.UUID) -> BalanceResponse | None:
    """Return the employee's balance, or None if no transaction was ever recorded."""
    result = await session.execute(select(CompTimeBalance).where(col(CompTimeBalance.employee_id) == employee_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        return None
    return _build_balance_response(balance)


async def list_transactions(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    txn_type: CompTimeTransactionType | None = None,
    occurred_from: datetime | None = None,
    occurred_to: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> TransactionListResponse:
    """List ledger rows with optional filters, newest effective date first."""
    filters = []
    if employee_id is not None:
        filters.append(col(CompTimeTransaction.employee_id) == employee_id)
    if txn_type is not None:
        filters.append(col(CompTimeTransaction.type) == txn_type.value)
    if occurred_from is not None:
        filters.append(col(CompTimeTransaction.occurred_at) >= as_utc(occurred_from))
    if occurred_to is not None:
        filters.append(col(CompTimeTransaction.occurred_at) <= as_utc(occurred_to))

    count_result = await session.execute(select(func.count()).select_from(CompTimeTransaction).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(CompTimeTransaction)
        .where(*filters)
        .order_by(col(CompTimeTransaction.occurred_at).desc(), col(CompTimeTransaction.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    entries = list(result.scalars().all())

    return TransactionListResponse(
        items=[_build_transaction_response(e) for e in entries],
        total=total,
        offset=offset,
        limit=limit,
    )


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def _check_source_request(
    session: AsyncSession,
    model: type[OvertimeRequest] | type[LeaveRequest],
    source_request_id: uuid.UUID,
    employee_id: uuid.UUID,
    noun: str,
) -> None:
    """A linked request must exist, belong to the same employee and be approved."""
    source = await session.get(model, source_request_id)
    if source is None:
        raise NotFound(f"{noun} request not found")
    if source.employee_id != employee_id:
        raise ValidationError(f"{noun} request belongs to another employee")
    if source.status != RequestStatus.APPROVED.value:
        raise InvalidState(f"Only approved {noun.lower()} requests can be linked to a transaction")


async def _ensure_single_link(
    session: AsyncSession,
    txn_type: CompTimeTransactionType,
    source_request_id: uuid.UUID,
    entry_id: uuid.UUID,
) -> None:
    link = (
        col(CompTimeTransaction.overtime_request_id)
        if txn_type == CompTimeTransactionType.EARN
        else col(CompTimeTransaction.leave_request_id)
    )
    result = await session.execute(
        select(col(CompTimeTransaction.id))
        .where(
            link == source_request_id,
            col(CompTimeTransaction.type) == txn_type.value,
            col(CompTimeTransaction.id) != entry_id,
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise InvalidState(f"Request already has a {txn_type.value} transaction")


async def record_transaction(
    session: AsyncSession,
    employee_id: uuid.UUID,
    txn_type: CompTimeTransactionType,
    minutes: int,
    occurred_at: datetime,
    reason: str | None = None,
    source_request_id: uuid.UUID | None = None,
    *,
    actor_id: uuid.UUID | None = None,
) -> TransactionResult:
    """Record a comp-time transaction and commit it together with the new balance.

    ``source_request_id`` is the overtime request for an earn and the leave
    request for a spend. The source must be an approved request of the same
    employee with no transaction of this type yet. Adjustments never carry a
    source.
    """
    _validate_minutes(txn_type, minutes)

    overtime_request_id: uuid.UUID | None = None
    leave_request_id: uuid.UUID | None = None
    if source_request_id is not None:
        if txn_type == CompTimeTransactionType.EARN:
            await _check_source_request(session, OvertimeRequest, source_request_id, employee_id, "Overtime")
            overtime_request_id = source_request_id
        elif txn_type == CompTimeTransactionType.SPEND:
            await _check_source_request(session, LeaveRequest, source_request_id, employee_id, "Leave")
            leave_request_id = source_request_id
        else:
            raise ValidationError("Adjustments cannot reference a source request")

    entry, balance = await _apply_transaction(
        session,
        employee_id=employee_id,
        txn_type=txn_type,
        minutes=minutes,
        occurred_at=occurred_at,
        reason=reason,
        overtime_request_id=overtime_request_id,
        leave_request_id=leave_request_id,
    )

    if source_request_id is not None:
        # Checked after the balance row is locked, so two entries for one source cannot both pass.
        try:
            await _ensure_single_link(session, txn_type, source_request_id, entry.id)
        except AppError:
            await session.rollback()
            raise

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.COMP_TIME_TRANSACTION,
        entity_id=entry.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(entry),
    )

    await session.commit()
    return TransactionResult(
        transaction=_build_transaction_response(entry),
        balance=_build_balance_response(balance),
    )


async def earn(
    session: AsyncSession,
    employee_id: uuid.UUID,
    minutes: int,
    occurred_at: datetime,
    overtime_request_id: uuid.UUID | None = None,
    reason: str | None = None,
) -> TransactionResult:
    return await record_transaction(
        session, employee_id, CompTimeTransactionType.EARN, minutes, occurred_at, reason, overtime_request_id
    )


async def spend(
    session: AsyncSession,
    employee_id: uuid.UUID,
    minutes: int,
    occurred_at: datetime,
    leave_request_id: uuid.UUID | None = None,
    reason: str | None = None,
) -> TransactionResult:
    return await record_transaction(
        session, employee_id, CompTimeTransactionType.SPEND, minutes, occurred_at, reason, leave_request_id
    )


async def adjust(
    session: AsyncSession,
    employee_id: uuid.UUID,
    signed_minutes: int,
    occurred_at: datetime,
    reason: str | None = None,
    *,
    actor_id: uuid.UUID | None = None,
) -> TransactionResult:
    """Manual correction; a negative amount may not overdraw the balance."""
    return await record_transaction(
        session,
        employee_id,
        CompTimeTransactionType.ADJUST,
        signed_minutes,
        occurred_at,
        reason,
        actor_id=actor_id,
    )


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


async def reconcile_balances(session: AsyncSession) -> ReconciliationReport:
    """Compare every stored balance with the signed sum of its ledger rows.

    Read-only. Employees with ledger rows but no balance row are reported
    with ``stored_minutes=None``.
    """
    ledger_result = await session.execute(
        select(col(CompTimeTransaction.employee_id), func.coalesce(func.sum(_SIGNED_MINUTES), 0)).group_by(
            col(CompTimeTransaction.employee_id)
        )
    )
    ledger_sums: dict[uuid.UUID, int] = {row[0]: int(row[1]) for row in ledger_result.all()}

    balance_result = await session.execute(
        select(col(CompTimeBalance.employee_id), col(CompTimeBalance.balance_minutes))
    )
    stored: dict[uuid.UUID, int] = {row[0]: int(row[1]) for row in balance_result.all()}

    drifts: list[BalanceDrift] = []
    for employee_id in sorted(stored.keys() | ledger_sums.keys(), key=str):
        stored_minutes = stored.get(employee_id)
        ledger_minutes = ledger_sums.get(employee_id, 0)
        if stored_minutes != ledger_minutes:
            logger.warning(
                "Comp-time drift for employee %s: stored=%s ledger=%d",
                employee_id,
                stored_minutes,
                ledger_minutes,
            )
            drifts.append(
                BalanceDrift(employee_id=employee_id, stored_minutes=stored_minutes, ledger_minutes=ledger_minutes)
            )

    return ReconciliationReport(checked=len(stored.keys() | ledger_sums.keys()), drifts=drifts)
