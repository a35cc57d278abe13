# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hr_admin.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from hr_admin.models.enums import FundingSource, LeaveTypeCategory, RequestStatus


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """Catalogue entry describing a kind of leave and what funds it."""

    __tablename__ = "leave_types"

    code: str = Field(max_length=50, unique=True)
    name: str = Field(max_length=255)
    category: str = Field(
        default=LeaveTypeCategory.OTHER, max_length=50, sa_column_kwargs={"server_default": "other"}
    )
    with_pay: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    requires_proof: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    funding_source: str = Field(
        default=FundingSource.STANDARD, max_length=50, sa_column_kwargs={"server_default": "standard"}
    )

    @property
    def draws_comp_time(self) -> bool:
        return self.funding_source == FundingSource.COMP_TIME.value


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_requests"
    __table_args__ = (sa.Index("ix_leave_request_employee_window", "employee_id", "start_at", "end_at"),)

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_types.id", ondelete="RESTRICT"), nullable=False),
    )
    start_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    end_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    hours: Decimal = Field(max_digits=6, decimal_places=2)
    reason: str | None = None
    status: str = Field(
        default=RequestStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    approver_employee_id: uuid.UUID | None = None
    decision_note: str | None = None
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
