"""
Pytest fixtures for test database, client, spots and a controllable clock.

Each test gets its own SQLite file so sessions opened by concurrent
contenders see the same data, and tables never leak between tests.
"""

import os

# Settings are cached on first use; configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from parkspot.main import app
from parkspot.db.base import Base
from parkspot.db.session import get_db
from parkspot.models.spot import ParkingSpot
from parkspot.services.cache_service import SpotListingCache

# IIT Guwahati campus, the reference location for spot fixtures
CAMPUS = (26.1870, 91.6916)


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the cache makes."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.hits = 0
        self.misses = 0

    async def ping(self):
        return True

    async def get(self, key):
        value = self.store.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.store.pop(key, None) is not None
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match=None, count=None):
        prefix = match.rstrip("*") if match else ""
        for key in list(self.store):
            if key.startswith(prefix):
                yield key

    async def info(self, section=None):
        return {"keyspace_hits": self.hits, "keyspace_misses": self.misses}

    async def aclose(self):
        pass


class FakeClock:
    """Callable clock the tests move forward by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create tables in a fresh SQLite file, dispose of the engine afterwards."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'parking_test.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.listing_cache = SpotListingCache()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add_spot(session: AsyncSession, **fields) -> ParkingSpot:
    spot = ParkingSpot(**fields)
    session.add(spot)
    await session.commit()
    await session.refresh(spot)
    return spot


@pytest_asyncio.fixture
async def test_spot(db_session: AsyncSession) -> ParkingSpot:
    """A bookable spot at 10.00 per hour, roughly 1.3 km from CAMPUS."""
    return await _add_spot(
        db_session,
        name="IIT Guwahati South Gate Parking",
        description="Parking near IITG South Gate",
        latitude=26.1825,
        longitude=91.7035,
        price=Decimal("10.00"),
        amenities=["security"],
        rating=4.2,
        rating_count=32,
    )


@pytest_asyncio.fixture
async def free_spot(db_session: AsyncSession) -> ParkingSpot:
    return await _add_spot(
        db_session,
        name="Guest House Parking",
        latitude=26.1880,
        longitude=91.6920,
        price=Decimal("0.00"),
        type="covered",
        amenities=["Security", "Covered"],
    )


@pytest_asyncio.fixture
async def far_spot(db_session: AsyncSession) -> ParkingSpot:
    """About 6 km from CAMPUS: outside the default search radius, inside 10 km."""
    return await _add_spot(
        db_session,
        name="Guwahati Railway Station Parking",
        latitude=26.1820,
        longitude=91.7510,
        price=Decimal("3.00"),
    )


@pytest_asyncio.fixture
async def unlocated_spot(db_session: AsyncSession) -> ParkingSpot:
    return await _add_spot(db_session, name="Unmapped lot", price=Decimal("1.00"))
