import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth import get_current_user
from app.db import get_db
from app.main import app
from app.models import Base
from app.session_client import SessionUser
from app.storage import UploadStorage, get_storage

ADMIN = SessionUser(id="admin-1", email="admin@example.com", role="ADMIN")
EDITOR = SessionUser(id="editor-1", email="editor@example.com", role="EDITOR")


@pytest_asyncio.fixture
async def engine():
    """A fresh in-memory SQLite database per test, shared by every session."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def session_state():
    """Mutable holder for the user the fake session provider returns."""
    return {"user": ADMIN}


@pytest.fixture
def storage(tmp_path):
    return UploadStorage(
        directory=str(tmp_path / "uploads"),
        public_base_url="http://testserver",
        max_bytes=1024,
    )


@pytest_asyncio.fixture
async def client(session_factory, session_state, storage):
    """
    Async client talking to the app in-process, with the database, the
    session provider and the upload storage swapped for test doubles.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: session_state["user"]
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


class Api:
    """Shortcuts for building fixtures through the public endpoints."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def create_generation(self, name="Kanto", number=1, **extra) -> dict:
        resp = await self.client.post("/generations", json={"name": name, "number": number, **extra})
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    async def create_type(self, name, **extra) -> dict:
        resp = await self.client.post("/types", json={"name": name, **extra})
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    async def create_pokemon(self, name, index_number, generation_id, type_ids, **extra) -> dict:
        payload = {
            "name": name,
            "indexNumber": index_number,
            "generationId": generation_id,
            "typeIds": type_ids,
            **extra,
        }
        resp = await self.client.post("/pokemons", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]


@pytest.fixture
def api(client):
    return Api(client)
