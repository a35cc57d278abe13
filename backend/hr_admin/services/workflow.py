"""State-machine helpers shared by the leave and overtime request workflows."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlmodel import col

from hr_admin.exceptions import Forbidden, InvalidState, OverlappingRequest
from hr_admin.models.enums import ACTIVE_REQUEST_STATUSES, RequestStatus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hr_admin.models.leave import LeaveRequest
    from hr_admin.models.overtime import OvertimeRequest
    from hr_admin.schemas.auth import AuthContext

    RequestModel = type[LeaveRequest] | type[OvertimeRequest]


def ensure_owner_or_admin(auth: AuthContext, employee_id: uuid.UUID, action: str) -> None:
    """Employees act on their own requests; admins act on anyone's."""
    if auth.user_id != employee_id and not auth.is_admin:
        raise Forbidden(f"Not authorized to {action} this request")


def ensure_pending(status: str, noun: str, action: str) -> None:
    if status != RequestStatus.PENDING.value:
        raise InvalidState(f"Only pending {noun} requests can be {action}")


async def lock_employee(session: AsyncSession, employee_id: uuid.UUID) -> None:
    """Serialize request writes for one employee until the transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock keyed on the employee.
    SQLite admits a single writer at a time, so callers that write the row
    before running the overlap query are already ordered there.
    """
    if session.get_bind().dialect.name == "postgresql":
        key = int.from_bytes(employee_id.bytes[:8], "big", signed=True)
        await session.execute(select(func.pg_advisory_xact_lock(key)))


async def check_overlap(
    session: AsyncSession,
    model: RequestModel,
    employee_id: uuid.UUID,
    start_at: datetime,
    end_at: datetime,
    exclude_request_id: uuid.UUID | None = None,
) -> None:
    """Raise OverlappingRequest if an active request of the same kind overlaps the range.

    Active means pending or approved. Two intervals overlap when
    existing.start_at < new.end_at AND existing.end_at > new.start_at.
    """
    query = select(col(model.id)).where(
        col(model.employee_id) == employee_id,
        col(model.status).in_([s.value for s in ACTIVE_REQUEST_STATUSES]),
        col(model.start_at) < end_at,
        col(model.end_at) > start_at,
    )
    if exclude_request_id is not None:
        query = query.where(col(model.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        noun = model.__tablename__.removesuffix("_requests").replace("_", " ")
        raise OverlappingRequest(f"{noun.capitalize()} request overlaps with an existing pending or approved request")


async def transition_from_pending(
    session: AsyncSession,
    model: RequestModel,
    request_id: uuid.UUID,
    new_status: RequestStatus,
    **values: Any,
) -> None:
    """Move a request out of pending with a compare-and-swap UPDATE.

    The statement only matches while the row is still pending, so a second
    reviewer racing the first one gets InvalidState instead of a double decision.
    """
    result = await session.execute(
        update(model)
        .where(col(model.id) == request_id, col(model.status) == RequestStatus.PENDING.value)
        .values(status=new_status.value, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise InvalidState("Request is no longer pending")
