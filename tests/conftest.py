"""Test fixtures for the dealboard API and pipeline.

Provides:
- A fresh in-memory SQLite database per test (tables created, engine disposed)
- FastAPI test app wired to that database
- Async HTTP client over ASGITransport
- DealRepository bound to the same database
- Factory helpers that create organizations, accounts and deals through the API
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.dealboard.config import get_settings  # noqa: E402
from src.dealboard.core.database import close_db, get_session, init_db  # noqa: E402
from src.dealboard.deals.repository import DealRepository  # noqa: E402
from src.dealboard.main import create_app  # noqa: E402


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Create all tables in a new in-memory database; dispose it afterwards."""
    get_settings.cache_clear()
    await init_db()
    yield
    await close_db()


@pytest_asyncio.fixture
async def app(database):
    """FastAPI app with pipeline services on app.state."""
    return create_app()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def repo(database) -> DealRepository:
    """Repository over the per-test database."""
    return DealRepository(session_factory=get_session)


@pytest_asyncio.fixture
async def make_organization(client):
    async def _make(name: str = "Acme") -> dict:
        response = await client.post("/organizations", json={"name": name})
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest_asyncio.fixture
async def make_account(client):
    async def _make(organization_id: int, name: str = "Globex") -> dict:
        response = await client.post(
            "/accounts", json={"name": name, "organization_id": organization_id}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest_asyncio.fixture
async def make_deal(client):
    async def _make(
        account_id: int,
        value: float = 1000,
        status: str = "build_proposal",
        year_of_creation: int | None = 2024,
    ) -> dict:
        body = {"account_id": account_id, "value": value, "status": status}
        if year_of_creation is not None:
            body["year_of_creation"] = year_of_creation
        response = await client.post("/deals", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
