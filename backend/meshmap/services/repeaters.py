"""Repeater registry keyed by (repeater id, node-level cell)."""

import logging
from datetime import datetime

from sqlalchemy import select

from meshmap.exceptions import ElevationLookupFailure, MalformedInput
from meshmap.models import Repeater
from meshmap.services.elevation import ElevationClient
from meshmap.services.storage import BaseStore

logger = logging.getLogger(__name__)


class RepeaterStore(BaseStore):
    """Latest sighting per repeater and location.

    Writes replace the whole record. Elevation is the exception: a write
    without one reuses the stored value for the same (id, cell) and only
    falls back to the elevation service when none is stored.
    """

    def __init__(self, session_maker, elevation: ElevationClient | None = None, **kwargs):
        super().__init__(session_maker, **kwargs)
        self._elevation = elevation

    async def _stored_elevation(self, repeater_id: str, cell: str) -> float | None:
        async def query(db):
            result = await db.execute(
                select(Repeater.elevation).where(
                    Repeater.id == repeater_id,
                    Repeater.hash == cell,
                )
            )
            return result.scalar()

        return await self._read(query)

    async def _lookup_elevation(self, lat: float, lon: float) -> float | None:
        if self._elevation is None:
            return None
        try:
            return await self._elevation.lookup(lat, lon)
        except ElevationLookupFailure as e:
            logger.warning(f"Error getting elevation for [{lat},{lon}]: {e}")
            return None

    async def upsert(
        self,
        repeater_id: str,
        cell: str,
        name: str,
        lat: float,
        lon: float,
        elevation: float | None = None,
        time: datetime | None = None,
    ) -> Repeater:
        """Record a sighting, resolving elevation when none is supplied."""
        if not repeater_id or not repeater_id.strip():
            raise MalformedInput("Repeater id is required")
        if name is None:
            raise MalformedInput("Repeater name is required")
        repeater_id = repeater_id.strip().lower()
        time = time or self.now()
        key = (repeater_id, cell)

        async with self._locks.hold(key):
            if elevation is None:
                elevation = await self._stored_elevation(repeater_id, cell)
            if elevation is None:
                elevation = await self._lookup_elevation(lat, lon)

            record = Repeater(
                id=repeater_id,
                hash=cell,
                time=time,
                name=name,
                elevation=elevation,
            )

            async def apply(db) -> Repeater:
                return await db.merge(record)

            # merge() replaces the row by primary key
            saved = await self._merge_unlocked(key, apply)

        logger.debug(f"Recorded repeater {repeater_id} at {cell}")
        return saved

    async def list_all(self) -> list[Repeater]:
        async def query(db):
            result = await db.execute(select(Repeater).order_by(Repeater.id, Repeater.hash))
            return list(result.scalars().all())

        return await self._read(query)
