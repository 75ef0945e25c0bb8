"""Shared test fixtures for Agenda API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL, and
pins the request clock to Monday 2030-01-07 08:00 in the default brand
timezone (America/Costa_Rica).
"""

from datetime import datetime
import pytest_asyncio
import pytz
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agenda.core.database import Base, get_db
from agenda.core.deps import get_request_time
from agenda.core.seed import seed_catalog
from agenda.main import app

# Import all models to ensure they're registered with Base.metadata
import agenda.models  # noqa: F401


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Monday, brand-local 08:00
NOW = pytz.timezone("America/Costa_Rica").localize(datetime(2030, 1, 7, 8, 0))


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_request_time] = lambda: NOW


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db):
    """Landing catalog (business types, features, plans)."""
    await seed_catalog(db)


@pytest_asyncio.fixture
async def brand_owner(client):
    """Register a brand and return its ROOT user's token."""
    resp = await client.post("/api/v1/auth/register-brand", json={
        "brand_name": "Studio Luz",
        "slug": "studio-luz",
        "email": "owner@studioluz.com",
        "password": "ownerpass123",
        "first_name": "Ana",
    })
    assert resp.status_code == 201
    data = resp.json()
    return {
        "token": data["access_token"],
        "brand_id": data["brand_id"],
        "user_id": data["user"]["id"],
    }


async def register_client(client, brand_id: int, email: str) -> dict:
    resp = await client.post(f"/api/v1/auth/brand/{brand_id}/register", json={
        "email": email,
        "password": "clientpass123",
        "first_name": "Client",
    })
    assert resp.status_code == 201
    data = resp.json()
    return {"token": data["access_token"], "user_id": data["user_id"], "brand_id": brand_id}


@pytest_asyncio.fixture
async def brand_client(client, brand_owner):
    """A CLIENT registered in the brand_owner's brand."""
    return await register_client(client, brand_owner["brand_id"], "client@example.com")
