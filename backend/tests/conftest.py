"""
Centralized Test Configuration.
"""

import pytest
from datetime import date, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
from backend.app.models.fleet_enums import VehicleType
from backend.app.schemas.driver import DriverCreate
from backend.app.schemas.vehicle import VehicleCreate
from backend.app.services import resource_registry as registry

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    """Factory for independent sessions (one per simulated request)."""
    return TestingSessionLocal


# --- Auth helpers ---

async def register_user(client, role: str) -> str:
    username = role.lower()
    response = await client.post("/v1/auth/register", json={
        "email": f"{username}@test.com",
        "username": username,
        "password": "password123",
        "role": role
    })
    assert response.status_code == 201, response.text
    return response.json()["access_token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def manager_headers(client):
    return bearer(await register_user(client, "MANAGER"))


@pytest.fixture
async def dispatcher_headers(client):
    return bearer(await register_user(client, "DISPATCHER"))


@pytest.fixture
async def safety_headers(client):
    return bearer(await register_user(client, "SAFETY_OFFICER"))


@pytest.fixture
async def analyst_headers(client):
    return bearer(await register_user(client, "FINANCIAL_ANALYST"))


# --- Fleet data factories ---

@pytest.fixture
def make_vehicle(db_session):
    counter = {"n": 0}

    async def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Truck {counter['n']}",
            "model": "Volvo FH",
            "license_plate": f"TST-{counter['n']:04d}",
            "vehicle_type": VehicleType.TRUCK,
            "max_capacity": 1000,
            "odometer": 1000,
            "region": "North",
            "acquisition_cost": 50000,
        }
        data.update(overrides)
        return await registry.create_vehicle(db_session, VehicleCreate(**data))

    return _make


@pytest.fixture
def make_driver(db_session):
    counter = {"n": 0}

    async def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Driver {counter['n']}",
            "phone": "555-0100",
            "license_number": f"LIC-{counter['n']:04d}",
            "license_expiry": date.today() + timedelta(days=365),
            "license_category": VehicleType.TRUCK,
            "safety_score": 90,
        }
        data.update(overrides)
        return await registry.create_driver(db_session, DriverCreate(**data))

    return _make
