"""
Tests for incident logging
"""
import pytest


def incident_payload(incident_id="inc-1", user_id="user-1", timestamp="2024-05-01T12:00:00Z"):
    return {
        "incidentId": incident_id,
        "userId": user_id,
        "timestamp": timestamp,
        "location": {"latitude": 34.05, "longitude": -118.24, "state": "CA"},
        "summary": "Stopped for a broken tail light",
        "metadata": {"interactionType": "traffic_stop", "duration": 420, "officerBadgeNumbers": ["1234"]},
    }


@pytest.mark.asyncio
async def test_create_and_list_incidents(client):
    """Incidents come back newest first with the page size as total"""
    await client.post("/api/incidents", json=incident_payload("inc-old", timestamp="2024-05-01T12:00:00Z"))
    await client.post("/api/incidents", json=incident_payload("inc-new", timestamp="2024-05-02T08:30:00Z"))
    await client.post("/api/incidents", json=incident_payload("inc-other", user_id="user-2"))

    response = await client.get("/api/incidents", params={"userId": "user-1"})

    assert response.status_code == 200
    body = response.json()
    assert [i["incidentId"] for i in body["data"]] == ["inc-new", "inc-old"]
    assert body["total"] == 2
    first = body["data"][0]
    assert first["timestamp"] == "2024-05-02T08:30:00Z"
    assert first["sharedStatus"] == "private"
    assert first["metadata"]["interactionType"] == "traffic_stop"
    assert first["location"]["state"] == "CA"


@pytest.mark.asyncio
async def test_list_pagination(client):
    for day in range(1, 4):
        await client.post(
            "/api/incidents",
            json=incident_payload(f"inc-{day}", timestamp=f"2024-05-0{day}T10:00:00Z"),
        )

    response = await client.get("/api/incidents", params={"userId": "user-1", "limit": 1, "offset": 1})

    assert [i["incidentId"] for i in response.json()["data"]] == ["inc-2"]
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_list_requires_user_id(client):
    response = await client.get("/api/incidents")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_rejects_out_of_range_limit(client):
    response = await client.get("/api/incidents", params={"userId": "user-1", "limit": 500})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_duplicate_incident_conflicts(client):
    assert (await client.post("/api/incidents", json=incident_payload())).status_code == 201

    response = await client.post("/api/incidents", json=incident_payload())

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_merges_metadata(client):
    """Adding notes keeps the metadata recorded at creation"""
    await client.post("/api/incidents", json=incident_payload())

    response = await client.put(
        "/api/incidents",
        json={
            "incidentId": "inc-1",
            "userId": "user-1",
            "sharedStatus": "shared_legal",
            "metadata": {"notes": "Officer did not give a reason"},
        },
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sharedStatus"] == "shared_legal"
    assert data["summary"] == "Stopped for a broken tail light"
    assert data["metadata"] == {
        "interactionType": "traffic_stop",
        "duration": 420,
        "officerBadgeNumbers": ["1234"],
        "notes": "Officer did not give a reason",
    }


@pytest.mark.asyncio
async def test_update_by_other_user_is_forbidden(client):
    await client.post("/api/incidents", json=incident_payload())

    response = await client.put(
        "/api/incidents",
        json={"incidentId": "inc-1", "userId": "user-2", "summary": "rewritten"},
    )

    assert response.status_code == 403
    listed = await client.get("/api/incidents", params={"userId": "user-1"})
    assert listed.json()["data"][0]["summary"] == "Stopped for a broken tail light"


@pytest.mark.asyncio
async def test_update_missing_incident(client):
    response = await client.put(
        "/api/incidents",
        json={"incidentId": "nope", "userId": "user-1", "summary": "x"},
    )
    assert response.status_code == 404
