# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from hr_admin.models.base import as_utc
from hr_admin.models.enums import CompTimeTransactionType

# ---------------------------------------------------------------------------
# Balance schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Comp-time balance of one employee."""

    employee_id: uuid.UUID
    balance_minutes: int
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Transaction schemas
# ---------------------------------------------------------------------------


class TransactionResponse(BaseModel):
    """A single comp-time ledger entry."""

    id: uuid.UUID
    employee_id: uuid.UUID
    type: CompTimeTransactionType
    minutes: int
    signed_minutes: int
    occurred_at: datetime
    overtime_request_id: uuid.UUID | None
    leave_request_id: uuid.UUID | None
    reason: str | None
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Paginated comp-time ledger entries."""

    items: list[TransactionResponse]
    total: int
    offset: int
    limit: int


class TransactionResult(BaseModel):
    """Outcome of recording a transaction: the new ledger row and the balance after it."""

    transaction: TransactionResponse
    balance: BalanceResponse


class CreateTransactionPayload(BaseModel):
    """Request body for an administrative comp-time transaction."""

    employee_id: uuid.UUID
    type: CompTimeTransactionType = CompTimeTransactionType.ADJUST
    minutes: int = Field(description="Magnitude for earn/spend; signed amount for adjust")
    occurred_at: datetime
    reason: str | None = Field(default=None, max_length=1000)
    source_request_id: uuid.UUID | None = None

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _validate_minutes(self) -> Self:
        if self.minutes == 0:
            msg = "minutes must be non-zero"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class BalanceDrift(BaseModel):
    """An employee whose stored balance disagrees with the ledger sum."""

    employee_id: uuid.UUID
    stored_minutes: int | None
    ledger_minutes: int


class ReconciliationReport(BaseModel):
    checked: int
    drifts: list[BalanceDrift]

    @property
    def consistent(self) -> bool:
        return not self.drifts
