"""Coverage accumulator: per-tile observed/heard flags and freshness.

The coverage view is rebuilt on every query by folding two sources into a
mapping of coarse cell -> TileCoverage:

* stored coverage tiles contribute ``(observed > 0, heard > 0, time)``
* stored samples, truncated to their tile, contribute
  ``(observed, has repeaters, time)``

Folding keeps the maximum of each flag and the minimum age, so the result
does not depend on the order in which events or sources are folded.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from meshmap.models import CoverageTile, Sample
from meshmap.services.geocell import to_coarse
from meshmap.services.storage import BaseStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass
class TileCoverage:
    """Aggregate for one tile: o/h are 0 or 1, a is age in days."""

    o: int
    h: int
    a: float

    def to_dict(self) -> dict:
        return {"o": self.o, "h": self.h, "a": self.a}


def age_in_days(time: datetime, now: datetime) -> float:
    """Elapsed days from time to now, rounded half-up to one decimal."""
    days = (now - time).total_seconds() / SECONDS_PER_DAY
    return math.floor(days * 10 + 0.5) / 10


def _fold(acc: dict[str, TileCoverage], cell: str, value: TileCoverage) -> None:
    prev = acc.get(cell)
    if prev is None:
        acc[cell] = TileCoverage(value.o, value.h, value.a)
        return
    prev.o = max(prev.o, value.o)
    prev.h = max(prev.h, value.h)
    prev.a = min(prev.a, value.a)


def add_coverage_item(
    acc: dict[str, TileCoverage],
    cell: str,
    observed,
    heard,
    time: datetime,
    now: datetime,
) -> None:
    """Fold one event into acc in place."""
    _fold(
        acc,
        cell,
        TileCoverage(o=1 if observed else 0, h=1 if heard else 0, a=age_in_days(time, now)),
    )


def combine_coverage(
    left: dict[str, TileCoverage], right: dict[str, TileCoverage]
) -> dict[str, TileCoverage]:
    """Merge two partial folds into a new mapping."""
    combined: dict[str, TileCoverage] = {}
    for part in (left, right):
        for cell, value in part.items():
            _fold(combined, cell, value)
    return combined


def fold_tiles(tiles: Iterable[CoverageTile], now: datetime) -> dict[str, TileCoverage]:
    acc: dict[str, TileCoverage] = {}
    for tile in tiles:
        add_coverage_item(acc, tile.hash, tile.observed > 0, tile.heard > 0, tile.time, now)
    return acc


def fold_samples(
    samples: Iterable[Sample], now: datetime, precision: int | None = None
) -> dict[str, TileCoverage]:
    acc: dict[str, TileCoverage] = {}
    for sample in samples:
        add_coverage_item(
            acc,
            to_coarse(sample.hash, precision),
            sample.observed,
            len(sample.repeaters or ()) > 0,
            sample.time,
            now,
        )
    return acc


def build_coverage(
    tiles: Iterable[CoverageTile],
    samples: Iterable[Sample],
    now: datetime,
    precision: int | None = None,
) -> dict[str, TileCoverage]:
    """Fold stored tiles and samples into the coverage mapping."""
    return combine_coverage(fold_tiles(tiles, now), fold_samples(samples, now, precision))


class CoverageStore(BaseStore):
    """Coverage tiles plus the read-time coverage projection."""

    async def save_tile(self, tile: CoverageTile) -> None:
        """Replace a tile record wholesale (coverage-ingest write hook)."""

        async def apply(db) -> None:
            existing = await db.get(CoverageTile, tile.hash, with_for_update=True)
            if existing is not None:
                await db.delete(existing)
                await db.flush()
            db.add(tile)

        await self._merge(tile.hash, apply)

    async def list_tiles(self) -> list[CoverageTile]:
        async def query(db):
            result = await db.execute(select(CoverageTile).order_by(CoverageTile.hash))
            return list(result.scalars().all())

        return await self._read(query)

    async def coverage(self, precision: int | None = None) -> dict[str, TileCoverage]:
        """Current coverage mapping for every tile with any contributing event."""

        async def query(db):
            tiles = (await db.execute(select(CoverageTile))).scalars().all()
            samples = (await db.execute(select(Sample))).scalars().all()
            return tiles, samples

        tiles, samples = await self._read(query)
        acc = build_coverage(tiles, samples, self.now(), precision)
        logger.debug(f"Built coverage for {len(acc)} tiles")
        return acc
