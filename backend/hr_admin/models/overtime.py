# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_admin.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_admin.models.enums import RequestStatus


class OvertimeRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's overtime request; approval may bank the hours as comp time."""

    __tablename__ = "overtime_requests"
    __table_args__ = (sa.Index("ix_overtime_request_employee_window", "employee_id", "start_at", "end_at"),)

    employee_id: uuid.UUID = Field(index=True)
    work_date: date
    start_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    end_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    planned_hours: Decimal = Field(max_digits=6, decimal_places=2)
    approved_hours: Decimal | None = Field(default=None, max_digits=6, decimal_places=2)
    reason: str | None = None
    status: str = Field(
        default=RequestStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    approver_employee_id: uuid.UUID | None = None
    decision_note: str | None = None
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    convert_to_comp_time: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
