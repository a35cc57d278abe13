# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from hr_admin.models.base import as_utc
from hr_admin.models.enums import RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateOvertimePayload(BaseModel):
    """Request body for filing an overtime request."""

    employee_id: uuid.UUID
    work_date: date
    start_at: datetime
    end_at: datetime
    planned_hours: Decimal = Field(gt=0, max_digits=6, decimal_places=2)
    reason: str | None = Field(default=None, max_length=2000)
    convert_to_comp_time: bool = False

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


class UpdateOvertimePayload(BaseModel):
    """Partial update of a pending overtime request."""

    work_date: date | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    planned_hours: Decimal | None = Field(default=None, gt=0, max_digits=6, decimal_places=2)
    reason: str | None = Field(default=None, max_length=2000)
    convert_to_comp_time: bool | None = None

    @field_validator("start_at", "end_at")
    @classmethod
    def _normalize_times(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class ReviewOvertimePayload(BaseModel):
    """Request body for approving or rejecting an overtime request.

    ``approved_hours`` is required when approving; the service enforces it
    against the planned hours.
    """

    approve: bool
    decision_note: str | None = Field(default=None, max_length=1000)
    approved_hours: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    convert_to_comp_time: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OvertimeResponse(BaseModel):
    """Response schema for a single overtime request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    start_at: datetime
    end_at: datetime
    planned_hours: Decimal
    approved_hours: Decimal | None
    reason: str | None
    status: RequestStatus
    approver_employee_id: uuid.UUID | None
    decision_note: str | None
    decided_at: datetime | None
    convert_to_comp_time: bool
    created_at: datetime


class OvertimeListResponse(BaseModel):
    """Paginated list of overtime requests."""

    items: list[OvertimeResponse]
    total: int


class OvertimeStatsResponse(BaseModel):
    total_planned_hours: Decimal
    total_approved_hours: Decimal
