"""
Pytest fixtures for test database, cache, and client.

Each test gets a fresh in-memory SQLite schema (foreign keys on, so leg
cascades behave like PostgreSQL) and an in-memory event cache.
"""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys, get_db
from app.models.event import Event
from app.services.cache_factory import get_event_cache
from app.services.cache_service import InMemoryEventCache

TEST_DATABASE_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(test_engine.sync_engine)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def event_cache() -> InMemoryEventCache:
    return InMemoryEventCache(ttl=60)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    event_cache: InMemoryEventCache,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and cache dependencies."""

    async def override_get_db():
        yield db_session

    async def override_get_event_cache():
        return event_cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_cache] = override_get_event_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def event_payload() -> dict:
    """A valid create/full-update body."""
    return {
        "name": "5K Fun Run",
        "event_date": "2025-05-01",
        "event_time": "08:00",
        "location": "Park",
        "categories": ["5K"],
        "registration_fees": {"5K": 20},
        "status": "upcoming",
    }


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """A three-leg relay parent with two categories."""
    event = Event(
        name="City Relay",
        event_date=date(2025, 6, 15),
        event_time="06:30",
        location="Riverside",
        distance=Decimal("21.10"),
        categories=["10K", "Half Marathon"],
        registration_fees={"10K": Decimal("25.00"), "Half Marathon": Decimal("40.00")},
        description="Annual relay along the river",
        status="upcoming",
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_legs(db_session: AsyncSession, test_event: Event) -> list[Event]:
    legs = [
        Event(
            name=f"City Relay - Leg {number}",
            event_date=test_event.event_date,
            event_time="06:30",
            location="Riverside",
            distance=Decimal("7.03"),
            categories=["10K"],
            registration_fees={},
            status="upcoming",
            is_leg=True,
            leg_number=number,
            parent_event_id=test_event.id,
        )
        for number in (1, 2, 3)
    ]
    db_session.add_all(legs)
    await db_session.commit()
    for leg in legs:
        await db_session.refresh(leg)
    return legs
