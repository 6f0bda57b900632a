"""Tests for the staff board and ticket actions."""

from typing import Any

import pytest
from fastapi import status

from tests.conftest import BRANCH_CODE, BRANCH_NAME, BRANCH_SLUG, register_guest

pytestmark = pytest.mark.asyncio

BASE = f"/api/v1/staff/{BRANCH_CODE}"


async def test_actions_require_a_token(client: Any, branch: Any) -> None:
    ticket = await register_guest(client)
    r = await client.post(f"{BASE}/call/A/{ticket['ticketId']}")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


async def test_garbage_token_is_rejected(client: Any, branch: Any) -> None:
    r = await client.get(f"{BASE}/board", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


async def test_staff_of_another_branch_is_forbidden(
    client: Any, branch: Any, other_staff_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client)
    r = await client.post(f"{BASE}/call/A/{ticket['ticketId']}", headers=other_staff_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN


async def test_admin_may_operate_any_branch(
    client: Any, branch: Any, admin_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client)
    r = await client.post(f"{BASE}/call/A/{ticket['ticketId']}", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK


async def test_call_seat_flow(client: Any, branch: Any, staff_headers: dict[str, str]) -> None:
    ticket = await register_guest(client, name="Ben", pax=2)
    ticket_id = ticket["ticketId"]

    r = await client.post(f"{BASE}/call/A/{ticket_id}", headers=staff_headers)
    assert r.json() == {"ok": True, "ticketId": ticket_id, "status": "called", "changed": True}

    r = await client.post(f"{BASE}/seat/A/{ticket_id}", headers=staff_headers)
    assert r.json()["status"] == "seated"

    r = await client.post(f"{BASE}/seat/A/{ticket_id}", headers=staff_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["changed"] is False


async def test_toggle_call_uncalls(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client)
    url = f"{BASE}/toggle-call/A/{ticket['ticketId']}"

    assert (await client.post(url, headers=staff_headers)).json()["status"] == "called"
    assert (await client.post(url, headers=staff_headers)).json()["status"] == "waiting"

    board = (await client.get(f"{BASE}/board", headers=staff_headers)).json()
    assert board["nowServing"] is None


async def test_seat_waiting_ticket_is_a_conflict(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client)

    r = await client.post(f"{BASE}/seat/A/{ticket['ticketId']}", headers=staff_headers)

    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json() == {
        "ok": False,
        "error": "Cannot move a waiting ticket to seated",
        "field": "status",
    }


async def test_skip_missing_ticket(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    r = await client.post(f"{BASE}/skip/A/missing", headers=staff_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND


async def test_board_lists_active_tickets(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    a = await register_guest(client, name="Ana", pax=2)
    skipped = await register_guest(client, name="Sol", pax=2)
    b = await register_guest(client, name="Ben", pax=4, phone="0917")
    await client.post(f"{BASE}/skip/A/{skipped['ticketId']}", headers=staff_headers)
    await client.post(f"{BASE}/call/B/{b['ticketId']}", headers=staff_headers)

    r = await client.get(f"{BASE}/board?date={a['date']}", headers=staff_headers)

    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert set(data["groups"]) == {"P", "A", "B", "C"}
    assert [t["code"] for t in data["groups"]["A"]] == ["A01"]
    assert data["groups"]["B"][0]["status"] == "called"
    assert data["groups"]["B"][0]["phone"] == "0917"
    assert data["nowServing"]["ticketId"] == b["ticketId"]
    assert data["nowServing"]["code"] == "B01"


async def test_board_by_slug_uses_canonical_branch(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client, name="Ana", pax=2)

    r = await client.get(
        f"/api/v1/staff/{BRANCH_SLUG}/board?date={ticket['date']}", headers=staff_headers
    )

    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert (data["branchCode"], data["branchName"]) == (BRANCH_CODE, BRANCH_NAME)
    assert [t["id"] for t in data["groups"]["A"]] == [ticket["ticketId"]]


async def test_actions_by_slug_act_on_canonical_branch(
    client: Any, branch: Any, staff_headers: dict[str, str]
) -> None:
    ticket = await register_guest(client)

    r = await client.post(
        f"/api/v1/staff/{BRANCH_SLUG}/call/A/{ticket['ticketId']}", headers=staff_headers
    )

    assert r.status_code == status.HTTP_200_OK
    assert r.json()["status"] == "called"


async def test_slug_of_another_branch_is_forbidden(
    client: Any, branch: Any, other_staff_headers: dict[str, str]
) -> None:
    r = await client.get(f"/api/v1/staff/{BRANCH_SLUG}/board", headers=other_staff_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN
