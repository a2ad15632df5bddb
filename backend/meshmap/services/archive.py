"""Archive service: moves stale samples out of the live tables."""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meshmap.database import utc_now
from meshmap.models import RxSampleSet, Sample, SampleArchive
from meshmap.services.projection import epoch_ms, sample_record

logger = logging.getLogger(__name__)


async def archive_old_data(
    session_maker: async_sessionmaker[AsyncSession],
    cutoff: datetime,
    now: datetime | None = None,
) -> dict[str, int]:
    """Archive samples and rx sample sets last updated before cutoff.

    Everything is moved in one transaction. Selected rows are locked and only
    those keys are deleted, so a cell written after the select is left alone.
    Returns archived row counts.
    """
    now = now or utc_now()
    archived = {}

    async with session_maker() as db:
        result = await db.execute(
            select(Sample).where(Sample.time < cutoff).with_for_update()
        )
        samples = result.scalars().all()
        for sample in samples:
            db.add(SampleArchive(time=now, kind="sample", data=sample_record(sample)))
        if samples:
            await db.execute(
                delete(Sample).where(Sample.hash.in_([s.hash for s in samples]))
            )
        archived["samples"] = len(samples)

        result = await db.execute(
            select(RxSampleSet).where(RxSampleSet.time < cutoff).with_for_update()
        )
        rx_sets = result.scalars().all()
        for rx in rx_sets:
            db.add(
                SampleArchive(
                    time=now,
                    kind="rx_sample",
                    data={"hash": rx.hash, "time": epoch_ms(rx.time), "samples": rx.samples},
                )
            )
        if rx_sets:
            await db.execute(
                delete(RxSampleSet).where(RxSampleSet.hash.in_([rx.hash for rx in rx_sets]))
            )
        archived["rx_samples"] = len(rx_sets)

        await db.commit()

    logger.info(
        f"Archived {archived['samples']} samples and {archived['rx_samples']} "
        f"rx sample sets older than {cutoff.isoformat()}"
    )
    return archived


class ArchiveService:
    """Background service that archives old samples periodically."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        after_days: int = 30,
        interval_hours: int = 24,
    ):
        self._session_maker = session_maker
        self._after = timedelta(days=after_days)
        self._interval = interval_hours * 3600
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the archive loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._archive_loop())
        logger.info("Started sample archive service")

    async def run_once(self) -> dict[str, int]:
        return await archive_old_data(self._session_maker, utc_now() - self._after)

    async def _archive_loop(self) -> None:
        """Periodic archive loop."""
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Sample archive error: {e}")

            await asyncio.sleep(self._interval)

    async def stop(self) -> None:
        """Stop the archive loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Stopped sample archive service")
