import pytest

from app.session_client import SessionUser


@pytest.mark.asyncio
async def test_summary_counts_rows_for_editors(client, api, session_state):
    kanto = await api.create_generation()
    fire = await api.create_type("Fire")
    await api.create_type("Water")
    await api.create_pokemon("Charmander", 4, kanto["id"], [fire["id"]])
    session_state["user"] = SessionUser(id="e", role="EDITOR")

    resp = await client.get("/dashboard/summary")

    assert resp.status_code == 200
    assert resp.json()["data"] == {"generations": 1, "types": 2, "pokemons": 1}


@pytest.mark.asyncio
async def test_summary_requires_a_role(client, session_state):
    session_state["user"] = SessionUser(id="v", role="VIEWER")
    assert (await client.get("/dashboard/summary")).status_code == 403

    session_state["user"] = None
    resp = await client.get("/dashboard/summary")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": {"message": "Authentication required"}}


@pytest.mark.asyncio
async def test_health_reports_database(client, engine, monkeypatch):
    monkeypatch.setattr("app.main.engine", engine)

    resp = await client.get("/health")

    assert resp.json() == {"status": "ok", "db": "connected"}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/nope")

    assert resp.status_code == 404
    assert resp.json()["success"] is False
