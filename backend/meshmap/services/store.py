"""The mesh map store: one object owning every keyed store."""

from collections.abc import Callable
from datetime import datetime

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meshmap.config import Settings
from meshmap.database import utc_now
from meshmap.services.coverage import CoverageStore
from meshmap.services.elevation import ElevationClient
from meshmap.services.locks import KeyedLock
from meshmap.services.repeaters import RepeaterStore
from meshmap.services.rx_samples import RxSampleStore
from meshmap.services.samples import SampleStore
from meshmap.services.senders import SenderStore


class MeshStore:
    """Samples, coverage, repeaters, senders and rx samples over one database."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        elevation: ElevationClient | None = None,
        clock: Callable[[], datetime] = utc_now,
        sender_name_max_length: int = 32,
    ):
        self.session_maker = session_maker
        self.clock = clock
        # Each store gets its own lock table; their key spaces never overlap
        self.samples = SampleStore(session_maker, clock=clock, locks=KeyedLock())
        self.coverage = CoverageStore(session_maker, clock=clock, locks=KeyedLock())
        self.repeaters = RepeaterStore(
            session_maker, elevation=elevation, clock=clock, locks=KeyedLock()
        )
        self.senders = SenderStore(
            session_maker,
            name_max_length=sender_name_max_length,
            clock=clock,
            locks=KeyedLock(),
        )
        self.rx_samples = RxSampleStore(session_maker, clock=clock, locks=KeyedLock())

    @classmethod
    def from_settings(
        cls, session_maker: async_sessionmaker[AsyncSession], settings: Settings
    ) -> "MeshStore":
        return cls(
            session_maker,
            elevation=ElevationClient(settings.elevation_url, settings.elevation_timeout),
            sender_name_max_length=settings.sender_name_max_length,
        )


def get_store(request: Request) -> MeshStore:
    """Dependency that provides the application's store."""
    return request.app.state.store
