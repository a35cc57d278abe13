"""Tests for leave types and the leave request workflow: filing, overlap
detection, comp-time funding, review, update, cancel, listing and audit.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from hr_admin.exceptions import InsufficientBalance
from hr_admin.models.audit import AuditLog
from hr_admin.models.comp_time import CompTimeBalance, CompTimeTransaction
from hr_admin.models.leave import LeaveRequest
from hr_admin.schemas.auth import AuthContext
from hr_admin.schemas.leave import CreateLeavePayload
from hr_admin.services import leave as leave_service

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

ADMIN_ID = uuid.uuid4()
EMPLOYEE_ID = uuid.uuid4()

ADMIN_HEADERS = {"X-User-Id": str(ADMIN_ID), "X-Role": "admin"}
EMPLOYEE_HEADERS = {"X-User-Id": str(EMPLOYEE_ID), "X-Role": "employee"}
LEAVE_TYPES_URL = "/leave-types"
LEAVES_URL = "/leaves"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _create_leave_type(client: AsyncClient, code: str = "ANNUAL", **extra: Any) -> str:
    resp = await client.post(
        LEAVE_TYPES_URL,
        json={"code": code, "name": f"{code.title()} leave", **extra},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    result: str = resp.json()["id"]
    return result


async def _grant_comp_time(client: AsyncClient, minutes: int, employee_id: uuid.UUID = EMPLOYEE_ID) -> None:
    resp = await client.post(
        "/comp-time/transactions",
        json={
            "employee_id": str(employee_id),
            "type": "adjust",
            "minutes": minutes,
            "occurred_at": "2026-01-01T00:00:00Z",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201


def _leave_payload(
    leave_type_id: str,
    start: str = "2026-04-06T13:00:00Z",
    end: str = "2026-04-06T15:00:00Z",
    hours: str = "2.00",
    employee_id: uuid.UUID = EMPLOYEE_ID,
) -> dict[str, Any]:
    return {
        "employee_id": str(employee_id),
        "leave_type_id": leave_type_id,
        "start_at": start,
        "end_at": end,
        "hours": hours,
        "reason": "Appointment",
    }


async def _file_leave(client: AsyncClient, leave_type_id: str, **kwargs: Any) -> dict[str, Any]:
    resp = await client.post(LEAVES_URL, json=_leave_payload(leave_type_id, **kwargs), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


async def _balance(session: AsyncSession, employee_id: uuid.UUID = EMPLOYEE_ID) -> int | None:
    result = await session.execute(
        select(col(CompTimeBalance.balance_minutes)).where(col(CompTimeBalance.employee_id) == employee_id)
    )
    return result.scalar_one_or_none()


async def _spends(session: AsyncSession, employee_id: uuid.UUID = EMPLOYEE_ID) -> list[CompTimeTransaction]:
    result = await session.execute(
        select(CompTimeTransaction)
        .where(col(CompTimeTransaction.employee_id) == employee_id, col(CompTimeTransaction.type) == "spend")
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


async def test_comp_code_defaults_to_comp_time_funding(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        LEAVE_TYPES_URL, json={"code": "COMP", "name": "Comp time off"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 201
    assert resp.json()["funding_source"] == "comp_time"


async def test_other_codes_default_to_standard_funding(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        LEAVE_TYPES_URL,
        json={"code": "SICK", "name": "Sick leave", "category": "sick", "requires_proof": True},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["funding_source"] == "standard"
    assert data["category"] == "sick"
    assert data["requires_proof"] is True
    assert data["with_pay"] is True


async def test_explicit_funding_source_wins(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        LEAVE_TYPES_URL,
        json={"code": "TOIL", "name": "Time off in lieu", "funding_source": "comp_time"},
        headers=ADMIN_HEADERS,
    )
    assert resp.json()["funding_source"] == "comp_time"


async def test_duplicate_leave_type_code(async_client: AsyncClient) -> None:
    await _create_leave_type(async_client, "ANNUAL")
    resp = await async_client.post(
        LEAVE_TYPES_URL, json={"code": "ANNUAL", "name": "Again"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 409


async def test_leave_type_creation_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        LEAVE_TYPES_URL, json={"code": "X", "name": "X"}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 403


async def test_list_leave_types_sorted_by_code(async_client: AsyncClient) -> None:
    for code in ("SICK", "ANNUAL", "COMP"):
        await _create_leave_type(async_client, code)

    resp = await async_client.get(LEAVE_TYPES_URL, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert [t["code"] for t in resp.json()] == ["ANNUAL", "COMP", "SICK"]


# ---------------------------------------------------------------------------
# Filing
# ---------------------------------------------------------------------------


async def test_file_standard_leave(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    data = await _file_leave(async_client, leave_type_id)

    assert data["status"] == "pending"
    assert data["employee_id"] == str(EMPLOYEE_ID)
    assert Decimal(data["hours"]) == Decimal("2")
    assert data["approver_employee_id"] is None
    assert data["decided_at"] is None


async def test_file_leave_for_someone_else_forbidden(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    resp = await async_client.post(
        LEAVES_URL, json=_leave_payload(leave_type_id, employee_id=uuid.uuid4()), headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 403


async def test_admin_files_leave_on_behalf(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    resp = await async_client.post(LEAVES_URL, json=_leave_payload(leave_type_id), headers=ADMIN_HEADERS)
    assert resp.status_code == 201


async def test_file_leave_unknown_type(async_client: AsyncClient) -> None:
    resp = await async_client.post(LEAVES_URL, json=_leave_payload(str(uuid.uuid4())), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"


async def test_file_leave_end_before_start(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    resp = await async_client.post(
        LEAVES_URL,
        json=_leave_payload(leave_type_id, start="2026-04-06T15:00:00Z", end="2026-04-06T13:00:00Z"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 422


async def test_file_leave_non_positive_hours(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    resp = await async_client.post(LEAVES_URL, json=_leave_payload(leave_type_id, hours="0"), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 422


async def test_overlapping_leave_rejected(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _create_leave_type(async_client)
    await _file_leave(async_client, leave_type_id)

    resp = await async_client.post(
        LEAVES_URL,
        json=_leave_payload(leave_type_id, start="2026-04-06T14:00:00Z", end="2026-04-06T16:00:00Z"),
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "OverlappingRequest"

    result = await db_session.execute(select(LeaveRequest).where(col(LeaveRequest.employee_id) == EMPLOYEE_ID))
    assert len(result.scalars().all()) == 1


async def test_adjacent_leave_allowed(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    await _file_leave(async_client, leave_type_id)
    await _file_leave(async_client, leave_type_id, start="2026-04-06T15:00:00Z", end="2026-04-06T17:00:00Z")


async def test_overlap_ignores_other_employees(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    await _file_leave(async_client, leave_type_id)

    resp = await async_client.post(
        LEAVES_URL, json=_leave_payload(leave_type_id, employee_id=uuid.uuid4()), headers=ADMIN_HEADERS
    )
    assert resp.status_code == 201


async def test_overlap_ignores_cancelled_and_rejected(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    first = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{first['id']}/cancel", headers=EMPLOYEE_HEADERS)

    second = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{second['id']}/review", json={"approve": False}, headers=ADMIN_HEADERS)

    await _file_leave(async_client, leave_type_id)


async def test_overlap_with_approved_leave(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    first = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{first['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    resp = await async_client.post(LEAVES_URL, json=_leave_payload(leave_type_id), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 409


async def test_concurrent_filings_store_one_request(
    async_client: AsyncClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    """Two sessions file the same window at once: one is stored, the other overlaps it."""
    leave_type_id = uuid.UUID(await _create_leave_type(async_client))
    payload = CreateLeavePayload(
        employee_id=EMPLOYEE_ID,
        leave_type_id=leave_type_id,
        start_at=datetime(2026, 4, 6, 13, 0, tzinfo=UTC),
        end_at=datetime(2026, 4, 6, 15, 0, tzinfo=UTC),
        hours=Decimal("2"),
    )
    auth = AuthContext(user_id=EMPLOYEE_ID)

    async with session_factory() as first, session_factory() as second:
        results = await asyncio.gather(
            leave_service.create_leave(first, auth, payload),
            leave_service.create_leave(second, auth, payload),
            return_exceptions=True,
        )

    assert sorted(type(r).__name__ for r in results) == ["LeaveResponse", "OverlappingRequest"]
    async with session_factory() as check:
        result = await check.execute(select(LeaveRequest).where(col(LeaveRequest.employee_id) == EMPLOYEE_ID))
        assert len(result.scalars().all()) == 1


async def test_comp_leave_blocked_when_balance_short(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 100)

    resp = await async_client.post(LEAVES_URL, json=_leave_payload(comp_type_id), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"] == "InsufficientBalance"

    result = await db_session.execute(select(LeaveRequest))
    assert result.scalars().all() == []
    assert await _balance(db_session) == 100


async def test_comp_leave_without_any_balance(async_client: AsyncClient) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    resp = await async_client.post(LEAVES_URL, json=_leave_payload(comp_type_id), headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 400


async def test_comp_leave_filing_holds_nothing(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 300)

    await _file_leave(async_client, comp_type_id)
    assert await _balance(db_session) == 300
    assert await _spends(db_session) == []


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


async def test_approve_comp_leave_spends_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 300)
    leave = await _file_leave(async_client, comp_type_id, hours="1.50")

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/review",
        json={"approve": True, "decision_note": "Enjoy"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["approver_employee_id"] == str(ADMIN_ID)
    assert data["decision_note"] == "Enjoy"
    assert data["decided_at"] is not None

    assert await _balance(db_session) == 210
    spends = await _spends(db_session)
    assert len(spends) == 1
    assert spends[0].minutes == 90
    assert spends[0].leave_request_id == uuid.UUID(leave["id"])
    assert spends[0].overtime_request_id is None


async def test_approve_standard_leave_touches_no_balance(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _create_leave_type(async_client)
    await _grant_comp_time(async_client, 300)
    leave = await _file_leave(async_client, leave_type_id)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)
    assert resp.json()["status"] == "approved"
    assert await _balance(db_session) == 300
    assert await _spends(db_session) == []


async def test_reject_comp_leave_spends_nothing(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 300)
    leave = await _file_leave(async_client, comp_type_id)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/review", json={"approve": False, "decision_note": "Busy week"}, headers=ADMIN_HEADERS
    )
    assert resp.json()["status"] == "rejected"
    assert await _balance(db_session) == 300
    assert await _spends(db_session) == []


async def test_approval_rechecks_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """Balance drained after filing: approval fails and the request stays pending."""
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 150)
    leave = await _file_leave(async_client, comp_type_id)
    await _grant_comp_time(async_client, -100)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)
    assert resp.status_code == 400
    assert resp.json()["error"] == "InsufficientBalance"

    current = await async_client.get(f"{LEAVES_URL}/{leave['id']}", headers=EMPLOYEE_HEADERS)
    assert current.json()["status"] == "pending"
    assert await _balance(db_session) == 50
    assert await _spends(db_session) == []


async def test_failed_spend_undoes_status_change(
    async_client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The debit fails after the request left pending: both writes are rolled back."""
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 150)
    leave = await _file_leave(async_client, comp_type_id)
    await _grant_comp_time(async_client, -120)

    async def _plenty(_session: AsyncSession, _employee_id: uuid.UUID) -> int:
        return 10_000

    monkeypatch.setattr(leave_service, "get_available_minutes", _plenty)

    with pytest.raises(InsufficientBalance):
        await leave_service.review_leave(db_session, uuid.UUID(leave["id"]), ADMIN_ID, approve=True)

    current = await async_client.get(f"{LEAVES_URL}/{leave['id']}", headers=EMPLOYEE_HEADERS)
    assert current.json()["status"] == "pending"
    assert current.json()["approver_employee_id"] is None
    assert await _balance(db_session) == 30
    assert await _spends(db_session) == []

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(leave["id"]), col(AuditLog.action) == "APPROVE")
    )
    assert result.scalars().all() == []


async def test_direct_spend_cannot_relink_approved_leave(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 600)
    leave = await _file_leave(async_client, comp_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    resp = await async_client.post(
        "/comp-time/transactions",
        json={
            "employee_id": str(EMPLOYEE_ID),
            "type": "spend",
            "minutes": 120,
            "occurred_at": "2026-04-06T13:00:00Z",
            "source_request_id": leave["id"],
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "InvalidState"
    assert len(await _spends(db_session)) == 1
    assert await _balance(db_session) == 480


async def test_second_review_is_invalid_state(async_client: AsyncClient, db_session: AsyncSession) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 600)
    leave = await _file_leave(async_client, comp_type_id)

    first = await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)
    assert first.status_code == 200

    second = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS
    )
    assert second.status_code == 409
    assert second.json()["error"] == "InvalidState"
    assert len(await _spends(db_session)) == 1
    assert await _balance(db_session) == 480


async def test_review_requires_admin(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 403


async def test_review_unknown_leave(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{LEAVES_URL}/{uuid.uuid4()}/review", json={"approve": True}, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_review_writes_audit_entry(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    result = await db_session.execute(
        select(AuditLog)
        .where(col(AuditLog.entity_type) == "LEAVE_REQUEST", col(AuditLog.entity_id) == uuid.UUID(leave["id"]))
        .order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())
    assert [e.action for e in entries] == ["CREATE", "APPROVE"]
    approve = entries[1]
    assert approve.actor_id == ADMIN_ID
    assert approve.before_json is not None
    assert approve.before_json["status"] == "pending"
    assert approve.after_json is not None
    assert approve.after_json["status"] == "approved"


# ---------------------------------------------------------------------------
# Update / cancel
# ---------------------------------------------------------------------------


async def test_update_pending_leave(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)

    resp = await async_client.patch(
        f"{LEAVES_URL}/{leave['id']}",
        json={"end_at": "2026-04-06T17:00:00Z", "hours": "4.00", "reason": "Longer appointment"},
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert Decimal(data["hours"]) == Decimal("4")
    assert data["reason"] == "Longer appointment"
    assert data["status"] == "pending"


async def test_update_comp_leave_does_not_recheck_balance(async_client: AsyncClient) -> None:
    comp_type_id = await _create_leave_type(async_client, "COMP")
    await _grant_comp_time(async_client, 120)
    leave = await _file_leave(async_client, comp_type_id)

    resp = await async_client.patch(f"{LEAVES_URL}/{leave['id']}", json={"hours": "6.00"}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200

    review = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS
    )
    assert review.status_code == 400


async def test_update_rejects_inverted_window(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)

    resp = await async_client.patch(
        f"{LEAVES_URL}/{leave['id']}", json={"end_at": "2026-04-06T12:00:00Z"}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationError"


async def test_update_into_overlap(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    await _file_leave(async_client, leave_type_id)
    later = await _file_leave(async_client, leave_type_id, start="2026-04-07T13:00:00Z", end="2026-04-07T15:00:00Z")

    resp = await async_client.patch(
        f"{LEAVES_URL}/{later['id']}",
        json={"start_at": "2026-04-06T14:00:00Z", "end_at": "2026-04-06T16:00:00Z"},
        headers=EMPLOYEE_HEADERS,
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "OverlappingRequest"


async def test_update_decided_leave_is_invalid_state(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    resp = await async_client.patch(f"{LEAVES_URL}/{leave['id']}", json={"hours": "1.00"}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 409
    assert resp.json()["error"] == "InvalidState"


async def test_cancel_pending_leave(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)

    resp = await async_client.post(
        f"{LEAVES_URL}/{leave['id']}/cancel", json={"decision_note": "Plans changed"}, headers=EMPLOYEE_HEADERS
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "cancelled"
    assert data["approver_employee_id"] == str(EMPLOYEE_ID)
    assert data["decision_note"] == "Plans changed"

    again = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert again.status_code == 409


async def test_cancel_approved_leave_is_invalid_state(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 409


async def test_cancel_someone_elses_leave_forbidden(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)

    outsider = {"X-User-Id": str(uuid.uuid4()), "X-Role": "employee"}
    resp = await async_client.post(f"{LEAVES_URL}/{leave['id']}/cancel", headers=outsider)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Listing / stats
# ---------------------------------------------------------------------------


async def test_list_leaves_scoped_and_filtered(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    first = await _file_leave(async_client, leave_type_id)
    await _file_leave(async_client, leave_type_id, start="2026-05-04T13:00:00Z", end="2026-05-04T15:00:00Z")
    await async_client.post(f"{LEAVES_URL}/{first['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)
    await async_client.post(
        LEAVES_URL, json=_leave_payload(leave_type_id, employee_id=uuid.uuid4()), headers=ADMIN_HEADERS
    )

    own = await async_client.get(LEAVES_URL, headers=EMPLOYEE_HEADERS)
    assert own.json()["total"] == 2
    assert [i["start_at"][:10] for i in own.json()["items"]] == ["2026-05-04", "2026-04-06"]

    approved = await async_client.get(LEAVES_URL, params={"status": "approved"}, headers=EMPLOYEE_HEADERS)
    assert [i["id"] for i in approved.json()["items"]] == [first["id"]]

    everyone = await async_client.get(LEAVES_URL, headers=ADMIN_HEADERS)
    assert everyone.json()["total"] == 3

    may = await async_client.get(LEAVES_URL, params={"from": "2026-05-01T00:00:00Z"}, headers=ADMIN_HEADERS)
    assert may.json()["total"] == 1


async def test_leave_stats(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    first = await _file_leave(async_client, leave_type_id, hours="2.50")
    await _file_leave(async_client, leave_type_id, start="2026-05-04T13:00:00Z", end="2026-05-04T15:00:00Z")
    await async_client.post(f"{LEAVES_URL}/{first['id']}/review", json={"approve": True}, headers=ADMIN_HEADERS)

    total = await async_client.get(f"{LEAVES_URL}/stats", headers=EMPLOYEE_HEADERS)
    assert total.status_code == 200
    assert Decimal(total.json()["total_hours"]) == Decimal("4.5")

    approved = await async_client.get(f"{LEAVES_URL}/stats", params={"status": "approved"}, headers=EMPLOYEE_HEADERS)
    assert Decimal(approved.json()["total_hours"]) == Decimal("2.5")


async def test_get_unknown_leave(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{LEAVES_URL}/{uuid.uuid4()}", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 404


async def test_get_leave_scoped_to_owner(async_client: AsyncClient) -> None:
    leave_type_id = await _create_leave_type(async_client)
    leave = await _file_leave(async_client, leave_type_id)
    url = f"{LEAVES_URL}/{leave['id']}"

    other = await async_client.get(url, headers={"X-User-Id": str(uuid.uuid4()), "X-Role": "employee"})
    assert other.status_code == 403
    assert other.json()["error"] == "Forbidden"

    admin = await async_client.get(url, headers=ADMIN_HEADERS)
    assert admin.status_code == 200
    assert admin.json()["id"] == leave["id"]
