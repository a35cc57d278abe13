# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from hr_admin.models.base import as_utc
from hr_admin.models.enums import FundingSource, LeaveTypeCategory, RequestStatus

# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


class CreateLeaveTypePayload(BaseModel):
    """Request body for adding a leave type to the catalogue.

    ``funding_source`` defaults from the configured comp-time code when omitted.
    """

    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    category: LeaveTypeCategory = LeaveTypeCategory.OTHER
    with_pay: bool = True
    requires_proof: bool = False
    funding_source: FundingSource | None = None


class LeaveTypeResponse(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    category: LeaveTypeCategory
    with_pay: bool
    requires_proof: bool
    funding_source: FundingSource


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeavePayload(BaseModel):
    """Request body for filing a leave request."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    hours: Decimal = Field(gt=0, max_digits=6, decimal_places=2)
    reason: str | None = Field(default=None, max_length=2000)

    @field_validator("start_at", "end_at")
    @classmethod
    def _normalize_times(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_at <= self.start_at:
            msg = "end_at must be after start_at"
            raise ValueError(msg)
        return self


class UpdateLeavePayload(BaseModel):
    """Partial update of a pending leave request."""

    leave_type_id: uuid.UUID | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    hours: Decimal | None = Field(default=None, gt=0, max_digits=6, decimal_places=2)
    reason: str | None = Field(default=None, max_length=2000)

    @field_validator("start_at", "end_at")
    @classmethod
    def _normalize_times(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class ReviewLeavePayload(BaseModel):
    """Request body for approving or rejecting a leave request."""

    approve: bool
    decision_note: str | None = Field(default=None, max_length=1000)


class CancelPayload(BaseModel):
    decision_note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    hours: Decimal
    reason: str | None
    status: RequestStatus
    approver_employee_id: uuid.UUID | None
    decision_note: str | None
    decided_at: datetime | None
    created_at: datetime


class LeaveListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveResponse]
    total: int


class LeaveStatsResponse(BaseModel):
    total_hours: Decimal
