"""Sample merge store keyed by node-level geocell."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select

from meshmap.models import Sample
from meshmap.services.storage import BaseStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleState:
    """Value of a sample cell, independent of storage."""

    time: datetime
    rssi: float | None = None
    snr: float | None = None
    observed: bool = False
    repeaters: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, row: Sample) -> "SampleState":
        return cls(
            time=row.time,
            rssi=row.rssi,
            snr=row.snr,
            observed=bool(row.observed),
            repeaters=frozenset(row.repeaters or ()),
        )


def normalize_path(path: Iterable[str] | None) -> frozenset[str]:
    """Lowercase repeater ids and drop blanks."""
    if not path:
        return frozenset()
    return frozenset(p.strip().lower() for p in path if p and p.strip())


def max_present(a: float | None, b: float | None) -> float | None:
    """Larger of two values, where None means no reading."""
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def merge_sample(prior: SampleState | None, incoming: SampleState) -> SampleState:
    """Combine a new observation with the stored one.

    Signal values keep the strongest reading, observed never reverts and the
    repeater set only grows. The time is always the incoming time.
    """
    if prior is None:
        return incoming
    return SampleState(
        time=incoming.time,
        rssi=max_present(prior.rssi, incoming.rssi),
        snr=max_present(prior.snr, incoming.snr),
        observed=prior.observed or incoming.observed,
        repeaters=prior.repeaters | incoming.repeaters,
    )


class SampleStore(BaseStore):
    """Latest merged observation per fine geocell."""

    async def upsert(
        self,
        cell: str,
        rssi: float | None = None,
        snr: float | None = None,
        observed: bool = False,
        path: Iterable[str] | None = None,
        time: datetime | None = None,
    ) -> SampleState:
        """Merge an observation into the cell, creating it if absent."""
        incoming = SampleState(
            time=time or self.now(),
            rssi=rssi,
            snr=snr,
            observed=bool(observed),
            repeaters=normalize_path(path),
        )

        async def apply(db) -> SampleState:
            result = await db.execute(
                select(Sample).where(Sample.hash == cell).with_for_update()
            )
            row = result.scalar()
            merged = merge_sample(SampleState.from_row(row) if row else None, incoming)
            if row is None:
                row = Sample(hash=cell)
                db.add(row)
            row.time = merged.time
            row.rssi = merged.rssi
            row.snr = merged.snr
            row.observed = merged.observed
            row.repeaters = sorted(merged.repeaters)
            return merged

        merged = await self._merge(cell, apply)
        logger.debug(f"Merged sample {cell}")
        return merged

    async def get(self, cell: str) -> Sample | None:
        async def query(db):
            result = await db.execute(select(Sample).where(Sample.hash == cell))
            return result.scalar()

        return await self._read(query)

    async def list_by_prefix(self, prefix: str = "") -> list[Sample]:
        """All samples whose cell key starts with prefix."""

        async def query(db):
            stmt = select(Sample).order_by(Sample.hash)
            if prefix:
                stmt = stmt.where(Sample.hash.startswith(prefix, autoescape=True))
            result = await db.execute(stmt)
            return list(result.scalars().all())

        return await self._read(query)

    async def list_all(self) -> list[Sample]:
        return await self.list_by_prefix("")
