"""
pytest configuration and shared fixtures for the Flock Map API tests.

Key concern: tests must not require a live MongoDB.
We achieve this by:
  1. Patching connect_to_mongo / close_mongo_connection to no-ops so
     FastAPI's lifespan doesn't try to reach a real database.
  2. Setting db_client.client = None (disconnected) so health check
     correctly reports "disconnected" — a valid test-mode state.
  3. Overriding get_db with an in-memory FakeDB that implements the
     subset of Motor's async API the routes use.
"""

import os
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")


# ── In-memory MongoDB emulator ─────────────────────────────────────────────────

class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs

    async def to_list(self, length=None):
        if length is None:
            return list(self._docs)
        return list(self._docs[:length])


class FakeCollection:
    """Minimal async-compatible replica of a Motor collection (read side)."""

    def __init__(self):
        self._docs: list[dict] = []

    def insert(self, doc: dict) -> dict:
        self._docs.append(doc)
        return doc

    def find(self, query: dict | None = None, projection: dict | None = None):
        query = query or {}
        matches = [self._project(d, projection) for d in self._docs if self._matches(d, query)]
        return FakeCursor(matches)

    async def find_one(self, query: dict, projection: dict | None = None):
        for doc in self._docs:
            if self._matches(doc, query):
                return self._project(doc, projection)
        return None

    @staticmethod
    def _project(doc: dict, projection: dict | None) -> dict:
        if not projection:
            return dict(doc)
        keep = {k for k, v in projection.items() if v}
        keep.add("_id")
        return {k: v for k, v in doc.items() if k in keep}

    @staticmethod
    def _matches(doc: dict, query: dict) -> bool:
        for key, cond in query.items():
            value = doc.get(key)
            if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
                for op, arg in cond.items():
                    if op == "$in" and value not in arg:
                        return False
                    if op == "$nin" and value in arg:
                        return False
                    if op == "$ne" and value == arg:
                        return False
            elif value != cond:
                return False
        return True


class FakeDB:
    """Fake MongoDB database — lazily creates collections."""

    def __init__(self):
        self._cols: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._cols:
            self._cols[name] = FakeCollection()
        return self._cols[name]


def _profile(user_id: str, **fields) -> dict:
    """A users document that passes the onboarded + visible filters."""
    doc = {
        "_id": user_id,
        "institution_id": None,
        "city": None,
        "state": None,
        "country": "United States",
        "latitude": None,
        "longitude": None,
        "onboarding_completed": True,
        "profile_visible": True,
    }
    doc.update(fields)
    return doc


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
async def mock_db():
    """
    Patch the MongoDB lifecycle for every test.

    - connect_to_mongo → no-op AsyncMock (startup doesn't attempt real connection)
    - close_mongo_connection → no-op AsyncMock
    - db_client.client → None  (health check reports "disconnected", which is fine)
    - db_client.db → None
    """
    with (
        patch("flock.core.database.connect_to_mongo", new_callable=AsyncMock),
        patch("flock.core.database.close_mongo_connection", new_callable=AsyncMock),
    ):
        import flock.core.database as db_module

        original_client = db_module.db_client.client
        original_db = db_module.db_client.db

        db_module.db_client.client = None
        db_module.db_client.db = None

        yield

        db_module.db_client.client = original_client
        db_module.db_client.db = original_db


@pytest.fixture()
async def client(mock_db):  # noqa: ARG001 — mock_db must run first
    """HTTPX async test client wired to the FastAPI app (no database)."""
    from flock.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def fake_db():
    """Fresh in-memory DB for each test."""
    return FakeDB()


@pytest.fixture()
def users(fake_db):
    from flock.core.config import settings

    return fake_db[settings.users_collection]


@pytest.fixture()
async def api_client(fake_db):
    """App client with get_db overridden to the in-memory FakeDB and a fresh rate limiter."""
    from flock.core.database import get_db
    from flock.core.rate_limit import limiter
    from flock.main import app

    limiter.reset()
    app.dependency_overrides[get_db] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def make_profile():
    """Factory: users document for *user_id* with *fields* overridden."""
    return _profile


@pytest.fixture()
def auth_headers():
    """Factory: bearer headers for a given user id."""
    from flock.core.security import create_access_token

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
