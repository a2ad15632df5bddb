"""Shared fixtures: a file-backed SQLite database and a store with a fixed clock."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import UTC, datetime, timedelta  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from meshmap import models  # noqa: E402, F401
from meshmap.database import Base  # noqa: E402
from meshmap.exceptions import ElevationLookupFailure  # noqa: E402
from meshmap.services.elevation import ElevationClient  # noqa: E402
from meshmap.services.store import MeshStore  # noqa: E402

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for deterministic timestamps."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def engine(tmp_path):
    """A fresh SQLite database with all tables created."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'meshmap.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def elevation():
    """Elevation client whose lookups fail unless a test says otherwise."""
    client = AsyncMock(spec=ElevationClient)
    client.lookup = AsyncMock(side_effect=ElevationLookupFailure("lookup disabled"))
    return client


@pytest.fixture
def store(session_maker, elevation, clock):
    return MeshStore(session_maker, elevation=elevation, clock=clock)
