"""
Integration tests for the REST API endpoints.

Runs the real application against an in-memory SQLite database; the
``get_db`` dependency is overridden so every request is its own transaction.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import APPROVER_ID, PASSENGER_ID, SPARE_VEHICLE_ID, VEHICLE_WITH_DRIVER_ID

TRIP_BODY = {
    "vehicle_id": VEHICLE_WITH_DRIVER_ID,
    "purpose": "Client workshop",
    "schedule_type": "pick-and-drop",
    "priority": "urgent",
    "scheduled_date": "2026-10-21",
    "scheduled_start_time": "08:00",
    "scheduled_end_time": "18:00",
    "passengers": [{"user_id": PASSENGER_ID, "pickup_stop_id": 1, "dropoff_stop_id": 3}],
}
APPROVER = {"X-Actor-Id": str(APPROVER_ID)}


async def _create_trip(client: AsyncClient) -> dict:
    resp = await client.post("/api/v1/trips", json=TRIP_BODY)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Health / identity ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_invalid_actor_header_is_unauthorized(client: AsyncClient):
    resp = await client.post(
        "/api/v1/trips", json=TRIP_BODY, headers={"X-Actor-Id": "nobody"}
    )
    assert resp.status_code == 401


# ── Stops & routes ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_stop_and_list(client: AsyncClient):
    resp = await client.post(
        "/api/v1/stops", json={"name": "Gulshan", "latitude": 23.7925, "longitude": 90.4078}
    )
    assert resp.status_code == 201
    assert resp.json()["latitude"] == 23.7925

    names = [s["name"] for s in (await client.get("/api/v1/stops")).json()]
    assert "Gulshan" in names
    assert names == sorted(names)


@pytest.mark.asyncio
async def test_create_stop_out_of_range(client: AsyncClient):
    resp = await client.post("/api/v1/stops", json={"name": "Bad", "latitude": 95, "longitude": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_stop_with_half_coordinates(client: AsyncClient):
    resp = await client.post("/api/v1/stops", json={"name": "Half", "latitude": 23.0})
    assert resp.status_code == 422
    assert resp.json()["field"] == "longitude"


@pytest.mark.asyncio
async def test_delete_stop_in_use_conflicts(client: AsyncClient):
    await client.post("/api/v1/routes", json={"name": "R", "stops": [{"stop_id": 1}, {"stop_id": 2}]})
    resp = await client.delete("/api/v1/stops/1")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_create_route_returns_distances(client: AsyncClient):
    resp = await client.post(
        "/api/v1/routes",
        json={
            "name": "Morning pick-up",
            "description": "North to south",
            "stops": [
                {"stop_id": 1, "departure_time": "07:30"},
                {"stop_id": 2, "arrival_time": "07:45", "departure_time": "07:47"},
            ],
        },
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["total_distance"] == 3.28
    assert [s["stop_order"] for s in data["stops"]] == [1, 2]
    assert data["stops"][0]["distance_from_previous"] == 0
    assert data["stops"][1]["cumulative_distance"] == 3.28
    assert data["stops"][1]["stop_name"] == "Dhaka University"
    assert data["stops"][1]["arrival_time"].startswith("07:45")


@pytest.mark.asyncio
async def test_route_with_unknown_stop_is_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/v1/routes", json={"name": "Bad", "stops": [{"stop_id": 1}, {"stop_id": 77}]}
    )
    assert resp.status_code == 422
    assert resp.json()["value"] == [77]


@pytest.mark.asyncio
async def test_route_rejects_bad_time_and_negative_distance(client: AsyncClient):
    resp = await client.post(
        "/api/v1/routes", json={"name": "Bad", "stops": [{"stop_id": 1, "arrival_time": "7:5"}]}
    )
    assert resp.status_code == 422
    resp = await client.post(
        "/api/v1/routes",
        json={"name": "Bad", "stops": [{"stop_id": 1}, {"stop_id": 2, "manual_distance": -1}]},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_route_recomputes_total(client: AsyncClient):
    created = (
        await client.post(
            "/api/v1/routes", json={"name": "R", "stops": [{"stop_id": 1}, {"stop_id": 2}]}
        )
    ).json()

    resp = await client.put(
        f"/api/v1/routes/{created['id']}",
        json={
            "name": "R2",
            "stops": [
                {"stop_id": 2},
                {"stop_id": 4, "manual_distance": 1.5},
                {"stop_id": 1},
            ],
        },
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert [s["stop_id"] for s in data["stops"]] == [2, 4, 1]
    assert [s["distance_from_previous"] for s in data["stops"]] == [0, 1.5, 0]
    assert data["total_distance"] == 1.5

    fetched = (await client.get(f"/api/v1/routes/{created['id']}")).json()
    assert fetched == data


@pytest.mark.asyncio
async def test_delete_route(client: AsyncClient):
    created = (await client.post("/api/v1/routes", json={"name": "R"})).json()
    assert (await client.delete(f"/api/v1/routes/{created['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/routes/{created['id']}")).status_code == 404


# ── Trips ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_trip(client: AsyncClient):
    data = await _create_trip(client)
    assert data["status"] == "pending"
    assert data["schedule_type"] == "pick-and-drop"
    assert data["requested_by"] == 1
    assert data["trip_number"].startswith("TRP-")
    assert data["passengers"][0]["user_id"] == PASSENGER_ID
    assert data["passengers"][0]["status"] == "pending"


@pytest.mark.asyncio
async def test_create_trip_rejects_unknown_schedule_type(client: AsyncClient):
    resp = await client.post("/api/v1/trips", json={**TRIP_BODY, "schedule_type": "joyride"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_trip_unknown_vehicle(client: AsyncClient):
    resp = await client.post("/api/v1/trips", json={**TRIP_BODY, "vehicle_id": 999})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_trip_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/trips/9999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_full_lifecycle(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"

    resp = await client.post(f"{base}/approve", headers=APPROVER)
    assert resp.status_code == 200
    assert resp.json()["approved_by"] == APPROVER_ID

    resp = await client.post(f"{base}/start", json={"odometer_start": 1000})
    assert resp.status_code == 200
    assert resp.json()["status"] == "in_progress"
    assert resp.json()["actual_start_time"] is not None

    resp = await client.post(
        f"{base}/complete",
        json={"odometer_end": 1120, "fuel_consumed": 10, "fuel_cost": 25.5, "other_costs": 4.5},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "completed"
    assert data["distance_traveled"] == 120
    assert data["total_cost"] == 30

    resp = await client.post(f"{base}/complete", json={"odometer_end": 1200})
    assert resp.status_code == 409
    assert resp.json()["current_status"] == "completed"


@pytest.mark.asyncio
async def test_complete_pending_trip_conflicts(client: AsyncClient):
    trip = await _create_trip(client)
    resp = await client.post(f"/api/v1/trips/{trip['id']}/complete", json={"odometer_end": 10})
    assert resp.status_code == 409
    assert resp.json()["current_status"] == "pending"


@pytest.mark.asyncio
async def test_complete_with_low_odometer_is_rejected(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"
    await client.post(f"{base}/approve", headers=APPROVER)
    await client.post(f"{base}/start", json={"odometer_start": 500})

    resp = await client.post(f"{base}/complete", json={"odometer_end": 499})
    assert resp.status_code == 422
    assert resp.json()["field"] == "odometer_end"
    assert (await client.get(base)).json()["status"] == "in_progress"


@pytest.mark.asyncio
async def test_start_requires_non_negative_odometer(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"
    await client.post(f"{base}/approve", headers=APPROVER)
    resp = await client.post(f"{base}/start", json={"odometer_start": -5})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_reject_then_approve(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"

    resp = await client.post(f"{base}/reject", json={"rejection_reason": "vehicle unavailable"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert resp.json()["rejection_reason"] == "vehicle unavailable"

    resp = await client.post(f"{base}/approve", headers=APPROVER)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_cancel_then_cancel_again(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"
    assert (await client.post(f"{base}/cancel")).json()["status"] == "cancelled"
    assert (await client.post(f"{base}/cancel")).status_code == 409


@pytest.mark.asyncio
async def test_update_trip_replaces_passengers(client: AsyncClient):
    trip = await _create_trip(client)
    resp = await client.put(
        f"/api/v1/trips/{trip['id']}",
        json={**TRIP_BODY, "priority": "low", "passengers": [{"user_id": APPROVER_ID}]},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["priority"] == "low"
    assert [p["user_id"] for p in data["passengers"]] == [APPROVER_ID]


@pytest.mark.asyncio
async def test_reassign_vehicle_records_history(client: AsyncClient):
    trip = await _create_trip(client)
    base = f"/api/v1/trips/{trip['id']}"

    resp = await client.post(
        f"{base}/reassign-vehicle",
        json={"vehicle_id": SPARE_VEHICLE_ID, "reason": "maintenance", "notes": "oil change"},
        headers=APPROVER,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["vehicle_id"] == SPARE_VEHICLE_ID
    assert resp.json()["status"] == "pending"

    history = (await client.get(f"{base}/vehicle-assignments")).json()
    assert [(h["vehicle_id"], h["is_current"], h["reason"]) for h in history] == [
        (VEHICLE_WITH_DRIVER_ID, False, "initial"),
        (SPARE_VEHICLE_ID, True, "maintenance"),
    ]
    assert history[1]["assigned_by"] == APPROVER_ID


@pytest.mark.asyncio
async def test_reassign_rejects_unknown_reason(client: AsyncClient):
    trip = await _create_trip(client)
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/reassign-vehicle",
        json={"vehicle_id": SPARE_VEHICLE_ID, "reason": "bored"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_only_pending(client: AsyncClient):
    pending = await _create_trip(client)
    assert (await client.delete(f"/api/v1/trips/{pending['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/trips/{pending['id']}")).status_code == 404

    approved = await _create_trip(client)
    await client.post(f"/api/v1/trips/{approved['id']}/approve", headers=APPROVER)
    assert (await client.delete(f"/api/v1/trips/{approved['id']}")).status_code == 409


@pytest.mark.asyncio
async def test_openapi_documents_error_bodies(client: AsyncClient):
    schema = (await client.get("/openapi.json")).json()
    responses = schema["paths"]["/api/v1/trips/{trip_id}/approve"]["post"]["responses"]
    for code in ("404", "409"):
        ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
        assert ref.endswith("/ErrorResponse")
    assert "current_status" in schema["components"]["schemas"]["ErrorResponse"]["properties"]
