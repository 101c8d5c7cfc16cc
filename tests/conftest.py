"""
Shared fixtures: an isolated app per test backed by a throwaway SQLite file.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from config.settings import Settings
from database.session import build_engine, build_session_factory, init_models
from main import create_app

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest_asyncio.fixture
async def session(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    await init_models(engine)
    factory = build_session_factory(engine)
    async with factory() as s:
        yield s
    await engine.dispose()


def register(client, name="Ann", email="ann@x.com", password="Secret123"):
    return client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def login(client, email="ann@x.com", password="Secret123") -> str:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client, name="Ann", email="ann@x.com", password="Secret123") -> str:
    """Register and log in, returning the bearer token."""
    assert register(client, name, email, password).status_code == 200
    return login(client, email, password)
