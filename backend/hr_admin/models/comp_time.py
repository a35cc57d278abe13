# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from hr_admin.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class CompTimeBalance(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Running comp-time total per employee, written in the same transaction as the ledger."""

    __tablename__ = "comp_time_balances"
    __table_args__ = (sa.CheckConstraint("balance_minutes >= 0", name="ck_comp_time_balance_non_negative"),)

    employee_id: uuid.UUID = Field(unique=True, index=True)
    balance_minutes: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})


class CompTimeTransaction(UUIDBase, TimestampMixin, table=True):
    """Append-only comp-time ledger entry.

    ``minutes`` is the magnitude for earn and spend entries and the signed
    amount for adjust entries.
    """

    __tablename__ = "comp_time_transactions"
    __table_args__ = (sa.Index("ix_comp_time_txn_employee_occurred", "employee_id", "occurred_at"),)

    employee_id: uuid.UUID = Field(index=True)
    type: str = Field(max_length=20)
    minutes: int
    occurred_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    overtime_request_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("overtime_requests.id", ondelete="SET NULL"), nullable=True),
    )
    leave_request_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_requests.id", ondelete="SET NULL"), nullable=True),
    )
    reason: str | None = None
