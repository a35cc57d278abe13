"""Seed script for development data.

Run with:  python -m hr_admin.seed
Inside Docker:  docker compose exec api python -m hr_admin.seed

Talks to a running API over HTTP, so every seeded row goes through the same
validation and audit path as real traffic. Re-running is safe for leave types
(409 is skipped); requests are only filed when the employee has none yet.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import UTC, date, datetime, timedelta

import httpx

BASE_URL = "http://localhost:8000"
ADMIN_USER_ID = "00000000-0000-0000-0000-000000000001"

ADMIN_HEADERS = {
    "Content-Type": "application/json",
    "X-User-Id": ADMIN_USER_ID,
    "X-Role": "admin",
}

# Well-known employee UUIDs
ALICE_ID = "00000000-0000-0000-0000-000000000002"
BOB_ID = "00000000-0000-0000-0000-000000000003"
CAROL_ID = "00000000-0000-0000-0000-000000000004"

LEAVE_TYPES = [
    {"code": "COMP", "name": "Compensatory time off", "category": "other", "with_pay": True},
    {"code": "ANNUAL", "name": "Annual leave", "category": "annual", "with_pay": True},
    {"code": "SICK", "name": "Sick leave", "category": "sick", "with_pay": True, "requires_proof": True},
    {"code": "UNPAID", "name": "Unpaid leave", "category": "unpaid", "with_pay": False},
]

# (employee_id, signed minutes, reason)
OPENING_BALANCES = [
    (BOB_ID, 480, "Opening balance carried over from the previous system"),
    (CAROL_ID, 120, "Opening balance carried over from the previous system"),
]


def _employee_headers(employee_id: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "X-User-Id": employee_id, "X-Role": "employee"}


async def _post(
    client: httpx.AsyncClient, path: str, json: dict, label: str, headers: dict[str, str] | None = None
) -> dict | None:
    """POST with 409-conflict tolerance for idempotency."""
    resp = await client.post(f"{BASE_URL}{path}", json=json, headers=headers or ADMIN_HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} ({resp.json().get('error')})")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _has_any(client: httpx.AsyncClient, path: str, employee_id: str) -> bool:
    resp = await client.get(f"{BASE_URL}{path}", params={"employee_id": employee_id, "limit": 1}, headers=ADMIN_HEADERS)
    return resp.status_code == 200 and resp.json()["total"] > 0


async def seed_leave_types(client: httpx.AsyncClient) -> dict[str, str]:
    """Seed the leave type catalogue and return a code->id mapping."""
    print("\n--- Seeding leave types ---")
    for leave_type in LEAVE_TYPES:
        await _post(client, "/leave-types", leave_type, leave_type["code"])

    resp = await client.get(f"{BASE_URL}/leave-types", headers=ADMIN_HEADERS)
    resp.raise_for_status()
    return {t["code"]: t["id"] for t in resp.json()}


async def seed_opening_balances(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding opening comp-time balances ---")
    for employee_id, minutes, reason in OPENING_BALANCES:
        if await _has_any(client, "/comp-time/transactions", employee_id):
            print(f"  [SKIP] {employee_id[:12]}... already has ledger entries")
            continue
        await _post(
            client,
            "/comp-time/transactions",
            {
                "employee_id": employee_id,
                "type": "adjust",
                "minutes": minutes,
                "occurred_at": datetime.now(UTC).isoformat(),
                "reason": reason,
            },
            f"{employee_id[:12]}... +{minutes}m",
        )


async def seed_overtime(client: httpx.AsyncClient) -> None:
    """File and approve a Saturday shift for Alice, banked as comp time."""
    print("\n--- Seeding overtime ---")
    if await _has_any(client, "/overtime", ALICE_ID):
        print("  [SKIP] Alice already has overtime requests")
        return

    work_day = date.today() - timedelta(days=(date.today().weekday() - 5) % 7 or 7)
    start = datetime(work_day.year, work_day.month, work_day.day, 9, tzinfo=UTC)
    created = await _post(
        client,
        "/overtime",
        {
            "employee_id": ALICE_ID,
            "work_date": work_day.isoformat(),
            "start_at": start.isoformat(),
            "end_at": (start + timedelta(hours=4)).isoformat(),
            "planned_hours": "4.00",
            "reason": "Quarter-end close",
            "convert_to_comp_time": True,
        },
        f"Alice overtime on {work_day}",
        headers=_employee_headers(ALICE_ID),
    )
    if created is None:
        return
    await _post(
        client,
        f"/overtime/{created['id']}/review",
        {"approve": True, "approved_hours": "4.00", "decision_note": "Thanks for covering"},
        "Approve Alice overtime (240m comp time)",
    )


async def seed_leaves(client: httpx.AsyncClient, leave_type_ids: dict[str, str]) -> None:
    """File a pending comp-time leave for Alice and an approved annual leave for Bob."""
    print("\n--- Seeding leave requests ---")
    next_monday = date.today() + timedelta(days=(7 - date.today().weekday()) or 7)
    start = datetime(next_monday.year, next_monday.month, next_monday.day, 13, tzinfo=UTC)

    if "COMP" in leave_type_ids and not await _has_any(client, "/leaves", ALICE_ID):
        await _post(
            client,
            "/leaves",
            {
                "employee_id": ALICE_ID,
                "leave_type_id": leave_type_ids["COMP"],
                "start_at": start.isoformat(),
                "end_at": (start + timedelta(hours=2)).isoformat(),
                "hours": "2.00",
                "reason": "Dentist",
            },
            "Alice comp-time leave (pending)",
            headers=_employee_headers(ALICE_ID),
        )

    if "ANNUAL" in leave_type_ids and not await _has_any(client, "/leaves", BOB_ID):
        created = await _post(
            client,
            "/leaves",
            {
                "employee_id": BOB_ID,
                "leave_type_id": leave_type_ids["ANNUAL"],
                "start_at": (start + timedelta(days=7)).isoformat(),
                "end_at": (start + timedelta(days=9)).isoformat(),
                "hours": "16.00",
                "reason": "Family visit",
            },
            "Bob annual leave",
            headers=_employee_headers(BOB_ID),
        )
        if created is not None:
            await _post(client, f"/leaves/{created['id']}/review", {"approve": True}, "Approve Bob annual leave")


async def main() -> None:
    print("=" * 60)
    print("  HR Admin — Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running")
            sys.exit(1)

        leave_type_ids = await seed_leave_types(client)
        await seed_opening_balances(client)
        await seed_overtime(client)
        await seed_leaves(client, leave_type_ids)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
