"""API test fixtures: FastAPI test client over the in-memory store.

Invariants:
    - The lifespan is not run; db_manager and user_repository are placed on
      app.state by hand over the test engine
"""

import pytest
from httpx import ASGITransport, AsyncClient

from userapi.config import Settings
from userapi.infrastructure.user_store import SqlUserRepository
from userapi.main import create_app


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:", port=8080, _env_file=None,
    )


@pytest.fixture
def test_app(test_settings, db_manager):
    app = create_app(test_settings)
    app.state.db_manager = db_manager
    app.state.user_repository = SqlUserRepository(db_manager)
    return app


@pytest.fixture
async def client(test_app):
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def create_user(client):
    """POST a user and return the response."""
    async def _create(name: str = "Ada", email: str = "ada@example.com"):
        return await client.post("/users", json={"name": name, "email": email})
    return _create
