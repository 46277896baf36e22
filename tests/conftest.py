"""
Pytest configuration and fixtures.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["HEALTH_CHECK_BROKER"] = "false"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dispatch_portal.application.use_cases.submit_request import SubmitRequestCommand
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.infrastructure.database.models import Base
from dispatch_portal.infrastructure.memory import InMemoryStore
from dispatch_portal.infrastructure.storage import build_memory_storage

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

# Times Square
CUSTOMER_LAT = 40.7580
CUSTOMER_LNG = -73.9855

MIDTOWN = Branch(id=1, partner_id=10, name="Midtown", lat=40.7549, lng=-73.9840)
BROOKLYN = Branch(
    id=2, partner_id=10, name="Brooklyn", lat=40.6782, lng=-73.9442, service_radius_km=5.0
)
JERSEY_CITY = Branch(id=3, partner_id=20, name="Jersey City", lat=40.7178, lng=-74.0431)
NO_LOCATION = Branch(id=4, partner_id=20, name="Warehouse")
CLOSED_BRANCH = Branch(
    id=5, partner_id=10, name="Queens", lat=40.7282, lng=-73.7949, is_active=False
)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return self.now


def make_submit_command(**overrides) -> SubmitRequestCommand:
    """Intake form data for a customer in midtown Manhattan."""
    data = {
        "category_id": 3,
        "service_id": 7,
        "pickup_option_id": 1,
        "customer_name": "Jane Doe",
        "customer_phone": "555-0100",
        "customer_address": "1 Times Square, New York, NY",
        "customer_lat": CUSTOMER_LAT,
        "customer_lng": CUSTOMER_LNG,
        "customer_id": 501,
    }
    data.update(overrides)
    return SubmitRequestCommand(**data)


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock():
    """Frozen clock starting at T0."""
    return FrozenClock()


@pytest.fixture
def memory_store():
    """In-memory store seeded with two partners and their branches."""
    store = InMemoryStore()
    for branch in (MIDTOWN, BROOKLYN, JERSEY_CITY, NO_LOCATION, CLOSED_BRANCH):
        store.add_branch(branch)
    return store


@pytest.fixture
def storage(memory_store):
    """Memory-backed storage."""
    return build_memory_storage(memory_store)


@pytest.fixture
def coordinator(storage, clock):
    """Dispatch coordinator on the memory backend with a frozen clock."""
    return storage.coordinator(clock)


@pytest_asyncio.fixture
async def submitted_request(storage, clock):
    """A freshly submitted request."""
    return await storage.submit_request_use_case(clock).execute(make_submit_command())


@pytest_asyncio.fixture
async def assigned_request(coordinator, submitted_request):
    """Request assigned to the Midtown branch at T0."""
    return await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)


@pytest.fixture
def sample_submit_payload():
    """Sample request intake payload."""
    return {
        "category_id": 3,
        "service_id": 7,
        "pickup_option_id": 1,
        "customer_id": 501,
        "customer": {
            "name": "Jane Doe",
            "phone": "555-0100",
            "address": "1 Times Square, New York, NY",
            "lat": CUSTOMER_LAT,
            "lng": CUSTOMER_LNG,
        },
    }
