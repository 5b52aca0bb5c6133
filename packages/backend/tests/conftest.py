"""Test fixtures — a fresh app + in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own Settings (in-memory aiosqlite database,
   temporary upload directory, cheap bcrypt rounds) and passes them to
   create_app() — the same way production passes env-derived settings.
2. The schema is created directly from the models; the in-memory
   database shares one connection (StaticPool), so it vanishes with the
   engine when the test ends.
3. The HTTP client talks to the app in-process via ASGITransport.

Nothing is overridden: the real auth gate and real token signing run in
every API test.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from profilehub.auth.jwt import create_access_token
from profilehub.config import Settings
from profilehub.db.models import Base
from profilehub.main import create_app
from profilehub.services.image_store import ImageStore

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

ALICE = {
    "name": "Alice",
    "email": "alice@example.com",
    "dateOfBirth": "2000-01-01",
    "gender": "Female",
    "password": "p1-alice",
}

BOB = {
    "name": "Bob",
    "email": "bob@example.com",
    "dateOfBirth": "1995-06-15",
    "gender": "Male",
    "password": "p1-bob",
}


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        database_url=TEST_DB_URL,
        jwt_secret="test-secret-do-not-use",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        max_image_bytes=64 * 1024,
    )


@pytest_asyncio.fixture()
async def app(settings):
    """App wired to a throwaway database with the schema created."""
    app = create_app(settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield app
    finally:
        await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session on the app's database, for service-level tests."""
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture()
def image_store(settings):
    store = ImageStore(settings.upload_dir)
    store.ensure_root()
    return store


async def register(client, user: dict) -> None:
    r = await client.post("/api/auth/register", json=user)
    assert r.status_code == 201, r.text


async def login(client, user: dict) -> str:
    r = await client.post(
        "/api/auth/login",
        json={"email": user["email"], "password": user["password"]},
    )
    assert r.status_code == 200, r.text
    return r.json()["token"]


async def user_id(client, user: dict) -> int:
    r = await client.get(f"/api/auth/profile/{user['email']}")
    assert r.status_code == 200, r.text
    return r.json()["id"]


@pytest_asyncio.fixture()
async def alice_headers(client):
    """Alice registered and logged in — her Authorization header."""
    await register(client, ALICE)
    token = await login(client, ALICE)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_token(settings):
    """Sign a token with the app's secret (optionally backdated)."""
    def _make(user_id: int, issued_at=None) -> str:
        return create_access_token(settings, user_id, issued_at=issued_at)
    return _make
