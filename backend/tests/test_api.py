"""
HTTP-level tests: authentication, role gates and error mapping.
"""

import pytest
from httpx import AsyncClient

from ticket_manager.schemas.game import ScheduleData
from ticket_manager.services import schedule_client

from tests.conftest import bearer, game_in


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "allocation_attempts_total" in metrics.text


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    assert (await client.get("/api/users/me")).status_code == 401
    bad = await client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_first_caller_is_provisioned_as_admin(client: AsyncClient):
    first = await client.get("/api/users/me", headers=bearer("sub-1", "one@x.io", "One"))
    second = await client.get("/api/users/me", headers=bearer("sub-2", "two@x.io", "Two"))

    assert first.json()["role"] == "admin"
    assert second.json()["role"] == "member"
    assert second.json()["name"] == "Two"


@pytest.mark.asyncio
async def test_seat_writes_require_admin(client: AsyncClient, member_headers, admin_headers):
    body = {"section": "121", "row": "E", "seat_start": 1, "seat_end": 2}

    forbidden = await client.post("/api/seats/batch", json=body, headers=member_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "forbidden"

    created = await client.post("/api/seats/batch", json=body, headers=admin_headers)
    assert created.status_code == 201
    assert [s["seat"] for s in created.json()] == ["1", "2"]

    duplicate = await client.post("/api/seats/batch", json=body, headers=admin_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"
    assert duplicate.json()["seats"] == ["1", "2"]

    listed = await client.get("/api/seats")
    assert len(listed.json()) == 2


@pytest.mark.asyncio
async def test_seat_range_validation_is_400(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/seats/batch",
        json={"section": "121", "row": "E", "seat_start": 9, "seat_end": 1},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["field"] == "seat_start"


@pytest.mark.asyncio
async def test_games_listing(client: AsyncClient, schedule):
    everything = await client.get("/api/games")
    assert everything.status_code == 200
    assert len(everything.json()) == 3

    home = await client.get("/api/games", params={"home_only": True})
    assert {g["game_pk"] for g in home.json()} == {schedule["home"], schedule["past"]}

    missing = await client.get("/api/games/4040")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_member_request_lifecycle(client: AsyncClient, schedule, seats, member_headers):
    created = await client.post(
        "/api/my/requests",
        json={
            "requests": [
                {"game_pk": schedule["home"], "seats_requested": 2},
                {"game_pk": schedule["away"], "seats_requested": 2},
            ]
        },
        headers=member_headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert len(body["created"]) == 1
    assert body["errors"][0]["index"] == 1
    request_id = body["created"][0]["id"]

    edited = await client.patch(
        f"/api/my/requests/{request_id}", json={"seats_requested": 3}, headers=member_headers
    )
    assert edited.json()["seats_requested"] == 3

    withdrawn = await client.delete(f"/api/my/requests/{request_id}", headers=member_headers)
    assert withdrawn.json()["status"] == "withdrawn"

    mine = await client.get("/api/my/requests", headers=member_headers)
    assert [r["status"] for r in mine.json()] == ["withdrawn"]


@pytest.mark.asyncio
async def test_admin_allocation_flow(client: AsyncClient, schedule, seats, member_user, member_headers, admin_headers):
    member_id = member_user.id
    created = await client.post(
        "/api/my/requests",
        json={"requests": [{"game_pk": schedule["home"], "seats_requested": 1}]},
        headers=member_headers,
    )
    request_id = created.json()["created"][0]["id"]
    tickets = (await client.get(f"/api/games/{schedule['home']}/tickets")).json()

    assert (await client.get("/api/admin/allocation", headers=member_headers)).status_code == 403

    allocated = await client.post(
        "/api/admin/allocate",
        json={"assignments": [{"game_ticket_id": tickets[0]["id"], "user_id": member_id, "request_id": request_id}]},
        headers=admin_headers,
    )
    assert allocated.status_code == 200
    assert allocated.json() == {"assigned_count": 1}

    taken = await client.post(
        "/api/admin/allocate",
        json={"assignments": [{"game_ticket_id": tickets[0]["id"], "user_id": member_id}]},
        headers=admin_headers,
    )
    assert taken.status_code == 409

    detail = (await client.get(f"/api/admin/allocation/{schedule['home']}", headers=admin_headers)).json()
    assert detail["requests"][0]["status"] == "approved"
    assert detail["tickets"][0]["assigned_user_name"] == "Mo Member"

    mine = (await client.get("/api/my/games", headers=member_headers)).json()
    assert [t["id"] for t in mine] == [tickets[0]["id"]]

    by_user = await client.get(f"/api/admin/allocation/by-user/{member_id}", headers=admin_headers)
    assert [t["id"] for t in by_user.json()] == [tickets[0]["id"]]

    released = await client.post(f"/api/my/games/{schedule['home']}/release", headers=member_headers)
    assert released.json() == {"released_count": 1}


@pytest.mark.asyncio
async def test_revoke_and_decline_endpoints(client: AsyncClient, schedule, seats, member_user, member_headers, admin_headers):
    member_id = member_user.id
    tickets = (await client.get(f"/api/games/{schedule['home']}/tickets")).json()
    await client.post(
        "/api/admin/allocate",
        json={"assignments": [{"game_ticket_id": tickets[1]["id"], "user_id": member_id}]},
        headers=admin_headers,
    )

    revoked = await client.delete(f"/api/admin/allocate/{tickets[1]['id']}", headers=admin_headers)
    assert revoked.json()["status"] == "available"
    again = await client.delete(f"/api/admin/allocate/{tickets[1]['id']}", headers=admin_headers)
    assert again.status_code == 409

    created = await client.post(
        "/api/my/requests",
        json={"requests": [{"game_pk": schedule["home"], "seats_requested": 2}]},
        headers=member_headers,
    )
    request_id = created.json()["created"][0]["id"]
    declined = await client.post(f"/api/admin/requests/{request_id}/decline", headers=admin_headers)
    assert declined.json()["status"] == "declined"

    pending = await client.get("/api/admin/requests", params={"status": "pending"}, headers=admin_headers)
    assert pending.json() == []


@pytest.mark.asyncio
async def test_ticket_status_correction(client: AsyncClient, schedule, seats, admin_headers):
    ticket_id = (await client.get(f"/api/games/{schedule['home']}/tickets")).json()[0]["id"]

    bad = await client.patch(f"/api/tickets/{ticket_id}", json={"status": "sold"}, headers=admin_headers)
    assert bad.status_code == 400
    assert bad.json()["field"] == "status"

    held = await client.patch(
        f"/api/tickets/{ticket_id}", json={"status": "held", "notes": "season opener"}, headers=admin_headers
    )
    assert held.json()["status"] == "held"

    summary = {s["game_pk"]: s for s in (await client.get("/api/tickets/summary")).json()}
    assert summary[schedule["home"]] == {"game_pk": schedule["home"], "total": 2, "available": 1}


@pytest.mark.asyncio
async def test_scrape_schedule_ingests_feed(client: AsyncClient, seats, admin_headers, monkeypatch):
    async def fake_fetch(season, client=None):
        assert season == 2027
        return ScheduleData(games=[game_in(8001), game_in(8002, home=False)])

    monkeypatch.setattr(schedule_client, "fetch_schedule", fake_fetch)

    response = await client.post(
        "/api/admin/scrape-schedule", json={"season": 2027}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json() == {"games": 2, "new_games": 2, "promotions": 0, "tickets": 2}


@pytest.mark.asyncio
async def test_request_id_header_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
