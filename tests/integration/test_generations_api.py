import uuid

import pytest

from app.session_client import SessionUser


@pytest.mark.asyncio
async def test_create_and_fetch_generation(client, api):
    """A created generation round-trips through GET in the success envelope."""
    # ARRANGE
    created = await api.create_generation("Kanto", 1, releasedAt="1996-02-27")

    # ACT
    resp = await client.get(f"/generations/{created['id']}")

    # ASSERT
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["name"] == "Kanto"
    assert body["data"]["releasedAt"] == "1996-02-27"


@pytest.mark.asyncio
async def test_list_is_ordered_by_number(client, api):
    await api.create_generation("Johto", 2)
    await api.create_generation("Kanto", 1)

    resp = await client.get("/generations")

    assert [g["number"] for g in resp.json()["data"]] == [1, 2]


@pytest.mark.asyncio
async def test_duplicate_number_is_a_conflict(client, api):
    await api.create_generation("Kanto", 1)

    resp = await client.post("/generations", json={"name": "Other", "number": 1})

    assert resp.status_code == 409
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_invalid_body_reports_issues(client):
    resp = await client.post("/generations", json={"name": "K", "number": 0})

    assert resp.status_code == 422
    paths = {issue["path"] for issue in resp.json()["error"]["issues"]}
    assert paths == {"name", "number"}


@pytest.mark.asyncio
async def test_partial_update_keeps_absent_fields(client, api):
    created = await api.create_generation("Kanto", 1, description="First")

    resp = await client.put(f"/generations/{created['id']}", json={"name": "Kanto Region"})

    data = resp.json()["data"]
    assert resp.status_code == 200
    assert data["name"] == "Kanto Region"
    assert data["number"] == 1
    assert data["description"] == "First"


@pytest.mark.asyncio
async def test_unknown_generation_is_404(client):
    resp = await client.get(f"/generations/{uuid.uuid4()}")

    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Generation not found"


@pytest.mark.asyncio
async def test_delete_refused_while_pokemon_belong_to_it(client, api):
    kanto = await api.create_generation()
    fire = await api.create_type("Fire")
    charmander = await api.create_pokemon("Charmander", 4, kanto["id"], [fire["id"]])

    resp = await client.delete(f"/generations/{kanto['id']}")

    assert resp.status_code == 409
    assert (await client.get(f"/generations/{kanto['id']}")).status_code == 200
    pokemon = (await client.get(f"/pokemons/{charmander['id']}")).json()["data"]
    assert pokemon["generation"]["id"] == kanto["id"]


@pytest.mark.asyncio
async def test_delete_unused_generation(client, api):
    kanto = await api.create_generation()

    resp = await client.delete(f"/generations/{kanto['id']}")

    assert resp.status_code == 204
    assert (await client.get(f"/generations/{kanto['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_mutations_require_admin(client, session_state):
    session_state["user"] = None
    assert (await client.post("/generations", json={"name": "Kanto", "number": 1})).status_code == 401

    session_state["user"] = SessionUser(id="e", role="EDITOR")
    resp = await client.post("/generations", json={"name": "Kanto", "number": 1})
    assert resp.status_code == 403
    assert resp.json()["error"]["message"] == "Admin privileges required"

    # Reads stay public
    session_state["user"] = None
    assert (await client.get("/generations")).status_code == 200
