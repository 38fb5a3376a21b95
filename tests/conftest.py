"""
Pytest fixtures for Forge Tycoon tests.
"""

import os
import random
import tempfile
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import NullPool

# Create a temp file for SQLite test database
_test_db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_test_db_path = _test_db_file.name
_test_db_file.close()

# Set test environment before the package reads its settings
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path}"
os.environ["DEBUG_MODE"] = "false"
os.environ["TICK_RATE_MS"] = "100"
os.environ["LOAD_AUTOSAVE_ON_START"] = "false"

from forge_tycoon.api.deps import set_shop
from forge_tycoon.config import Settings
from forge_tycoon.database import create_save_engine, create_session_factory, create_tables
from forge_tycoon.events import EventBus, Notification
from forge_tycoon.gameplay.inventory import ResourceLedger
from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.main import app
from forge_tycoon.models import SaveSlot  # noqa: F401
from forge_tycoon.persistence import SaveManager, set_save_manager


START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """A wall clock that only moves when a test moves it."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class Recorder:
    """Collects every event of the given types published on a bus."""

    def __init__(self, bus: EventBus, *event_types):
        self.events = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of(self, event_type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def now() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def ledger(bus: EventBus, now: FrozenClock) -> ResourceLedger:
    return ResourceLedger(bus, now=now)


@pytest.fixture
def notifications(bus: EventBus) -> list:
    received = []
    bus.subscribe(Notification, received.append)
    return received


@pytest.fixture
def shop(now: FrozenClock, rng: random.Random) -> Shop:
    return Shop(rng=rng, now=now)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        autosave_enabled=True,
        autosave_interval_seconds=30,
        autosave_slot="auto",
    )


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """A fresh SQLite save store per test."""
    engine = create_save_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'saves.db'}",
        poolclass=NullPool,
    )
    await create_tables(engine)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(shop: Shop, session_factory, settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client bound to a fresh shop and save store."""
    set_shop(shop)
    set_save_manager(SaveManager(shop, session_factory, settings))

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    set_save_manager(None)
    set_shop(None)
