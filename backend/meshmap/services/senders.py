"""Sender roster: which named senders were active in which tile per day."""

import logging
from datetime import datetime, time as dt_time

from sqlalchemy import distinct, func, select

from meshmap.exceptions import MalformedInput
from meshmap.models import Sender
from meshmap.services.storage import BaseStore

logger = logging.getLogger(__name__)


def day_start(moment: datetime) -> datetime:
    """Midnight at the start of moment's day, in moment's timezone."""
    return datetime.combine(moment.date(), dt_time.min, tzinfo=moment.tzinfo)


class SenderStore(BaseStore):
    """Insert-if-absent log of (tile, sender, day)."""

    def __init__(self, session_maker, name_max_length: int = 32, **kwargs):
        super().__init__(session_maker, **kwargs)
        self.name_max_length = name_max_length

    async def record(self, cell: str, name: str, day: datetime | None = None) -> bool:
        """Record a sender in a tile for a day. Returns False if already present."""
        if not name or not name.strip():
            raise MalformedInput("Sender name is required")
        name = name.strip()[: self.name_max_length]
        day = day_start(day or self.now())
        key = (cell, name, day)

        async def apply(db) -> bool:
            result = await db.execute(
                select(Sender).where(
                    Sender.hash == cell,
                    Sender.name == name,
                    Sender.time == day,
                )
            )
            if result.scalar() is not None:
                return False
            db.add(Sender(hash=cell, name=name, time=day))
            return True

        # A concurrent insert of the same triple means it is already recorded
        return await self._merge(key, apply, on_conflict=lambda: False)

    async def rank_since(self, cutoff: datetime) -> list[dict]:
        """Senders active after cutoff, by number of distinct tiles, descending."""
        tiles = func.count(distinct(Sender.hash)).label("tiles")

        async def query(db):
            result = await db.execute(
                select(Sender.name, tiles)
                .where(Sender.time > cutoff)
                .group_by(Sender.name)
                .order_by(tiles.desc(), Sender.name)
            )
            return [{"name": row.name, "tiles": row.tiles} for row in result.all()]

        return await self._read(query)

    async def list_all(self) -> list[Sender]:
        async def query(db):
            result = await db.execute(select(Sender).order_by(Sender.time, Sender.name))
            return list(result.scalars().all())

        return await self._read(query)
