"""Raw receive samples per node-level cell and their rollup."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from meshmap.models import RxSampleSet
from meshmap.services.storage import BaseStore

logger = logging.getLogger(__name__)


@dataclass
class RxRollup:
    hash: str
    time: datetime
    count: int
    rssi: float | None
    snr: float | None
    repeaters: list[str]


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def rollup_set(row: RxSampleSet) -> RxRollup:
    """Count, mean rssi/snr over present values, and distinct repeaters."""
    samples = row.samples or []
    rssi = [s["rssi"] for s in samples if s.get("rssi") is not None]
    snr = [s["snr"] for s in samples if s.get("snr") is not None]
    repeaters = {s["repeater"] for s in samples if s.get("repeater") is not None}
    return RxRollup(
        hash=row.hash,
        time=row.time,
        count=len(samples),
        rssi=_mean(rssi),
        snr=_mean(snr),
        repeaters=sorted(repeaters),
    )


class RxSampleStore(BaseStore):
    """Append-only per-cell lists of (rssi, snr, repeater)."""

    async def append(
        self,
        cell: str,
        rssi: float | None = None,
        snr: float | None = None,
        repeater: str | None = None,
        time: datetime | None = None,
    ) -> int:
        """Append one tuple and advance the cell time. Returns the new count."""
        time = time or self.now()
        entry = {
            "rssi": rssi,
            "snr": snr,
            "repeater": (repeater or "").strip().lower() or None,
        }

        async def apply(db) -> int:
            result = await db.execute(
                select(RxSampleSet).where(RxSampleSet.hash == cell).with_for_update()
            )
            row = result.scalar()
            if row is None:
                row = RxSampleSet(hash=cell, samples=[])
                db.add(row)
            # Assign a new list so the JSON column is flagged dirty
            row.samples = [*(row.samples or []), entry]
            row.time = time
            return len(row.samples)

        return await self._merge(cell, apply)

    async def rollup(self) -> list[RxRollup]:
        async def query(db):
            result = await db.execute(select(RxSampleSet).order_by(RxSampleSet.hash))
            return result.scalars().all()

        rows = await self._read(query)
        return [rollup_set(row) for row in rows]
