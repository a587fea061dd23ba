"""
Tests for rights guides and scripts, including the fallback dataset
"""
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from crud.content import ContentRepository
from database import get_db
from main import app
from services.content_service import filter_fallback_guides, filter_fallback_scripts

GUIDE = {
    "guideId": "tx-basic-en",
    "state": "TX",
    "language": "en",
    "type": "basic",
    "lastUpdated": "2024-03-01",
    "content": {
        "title": "Texas Legal Rights Guide",
        "summary": "Essential rights during police interactions in Texas",
        "sections": [
            {"title": "Right to Remain Silent", "content": "You may decline to answer.", "importance": "critical"},
        ],
    },
}

SCRIPT = {
    "scriptId": "checkpoint-en",
    "scenario": "checkpoint",
    "language": "en",
    "stateApplicability": ["CA"],
    "content": {
        "title": "Checkpoint Script",
        "situation": "You are stopped at a checkpoint",
        "doSay": ["\"Am I being detained?\""],
        "dontSay": ["Don't consent to searches"],
        "keyPoints": ["Stay calm"],
    },
}


@pytest.fixture
def broken_store(tmp_path):
    """Route requests to a database without tables, so every query fails."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    return override_get_db


@pytest.mark.asyncio
async def test_guides_from_database(client):
    """Stored guides are served and tagged with their source"""
    created = await client.post("/api/guides", json=GUIDE)
    assert created.status_code == 201

    response = await client.get("/api/guides", params={"state": "TX"})

    body = response.json()
    assert body["source"] == "database"
    assert [g["guideId"] for g in body["data"]] == ["tx-basic-en"]
    assert body["data"][0]["content"]["sections"][0]["importance"] == "critical"


@pytest.mark.asyncio
async def test_guides_fall_back_when_store_fails(client, broken_store):
    app.dependency_overrides[get_db] = broken_store

    response = await client.get("/api/guides", params={"state": "CA", "language": "en"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert [g["guideId"] for g in body["data"]] == ["ca-basic-en"]


@pytest.mark.asyncio
async def test_guides_fall_back_on_connection_error(client, monkeypatch):
    """A driver-level connection failure also serves the fallback dataset"""

    async def refuse(*args, **kwargs):
        raise ConnectionRefusedError("database unreachable")

    monkeypatch.setattr(ContentRepository, "list_guides", refuse)

    response = await client.get("/api/guides", params={"state": "NY"})

    assert response.status_code == 200
    assert response.json()["source"] == "fallback"
    assert [g["guideId"] for g in response.json()["data"]] == ["ny-basic-en"]


@pytest.mark.asyncio
async def test_scripts_fall_back_with_filters(client, broken_store):
    app.dependency_overrides[get_db] = broken_store

    response = await client.get("/api/scripts", params={"scenario": "traffic_stop", "state": "NY"})

    body = response.json()
    assert body["source"] == "fallback"
    assert [s["scriptId"] for s in body["data"]] == ["traffic-stop-en"]


@pytest.mark.asyncio
async def test_script_state_filter_matches_listed_state(client):
    await client.post("/api/scripts", json=SCRIPT)

    in_state = await client.get("/api/scripts", params={"state": "CA"})
    other_state = await client.get("/api/scripts", params={"state": "NY"})

    assert [s["scriptId"] for s in in_state.json()["data"]] == ["checkpoint-en"]
    assert other_state.json()["data"] == []
    assert in_state.json()["data"][0]["content"]["doSay"] == ["\"Am I being detained?\""]


@pytest.mark.asyncio
async def test_duplicate_guide_conflicts(client):
    assert (await client.post("/api/guides", json=GUIDE)).status_code == 201

    response = await client.post("/api/guides", json=GUIDE)

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_invalid_guide_is_rejected(client):
    bad = dict(GUIDE, content={"title": "Missing sections", "summary": "x"})

    response = await client.post("/api/guides", json=bad)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_invalid_language_filter(client):
    response = await client.get("/api/guides", params={"language": "fr"})
    assert response.status_code == 400


def test_fallback_guide_filters():
    assert [g["guideId"] for g in filter_fallback_guides(state="NY")] == ["ny-basic-en"]
    assert filter_fallback_guides(language="es") == []
    assert len(filter_fallback_guides()) == 2


def test_fallback_scripts_apply_everywhere():
    assert len(filter_fallback_scripts(state="TX")) == 3
    assert [s["scriptId"] for s in filter_fallback_scripts(scenario="questioning")] == ["questioning-en"]
