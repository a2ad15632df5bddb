"""Prometheus metrics endpoint."""

from datetime import timedelta

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from meshmap.database import get_db, utc_now
from meshmap.models import CoverageTile, Repeater, RxSampleSet, Sample, SampleArchive, Sender

router = APIRouter(tags=["metrics"])


async def collect_metrics(db: AsyncSession) -> bytes:
    """Collect all metrics and return Prometheus format."""
    registry = CollectorRegistry()

    db_rows = Gauge(
        "meshmap_db_rows_total",
        "Row count per table",
        ["table"],
        registry=registry,
    )
    observed_cells = Gauge(
        "meshmap_observed_samples_total",
        "Sample cells marked observed",
        registry=registry,
    )
    recent_samples = Gauge(
        "meshmap_samples_updated_last_day",
        "Sample cells updated in the last 24 hours",
        registry=registry,
    )
    active_senders = Gauge(
        "meshmap_senders_active_last_week",
        "Distinct senders seen in the last 7 days",
        registry=registry,
    )

    for table_name, model in [
        ("samples", Sample),
        ("coverage", CoverageTile),
        ("repeaters", Repeater),
        ("senders", Sender),
        ("rx_samples", RxSampleSet),
        ("sample_archive", SampleArchive),
    ]:
        count_result = await db.execute(select(func.count()).select_from(model))
        db_rows.labels(table=table_name).set(count_result.scalar() or 0)

    now = utc_now()
    result = await db.execute(
        select(func.count()).select_from(Sample).where(Sample.observed.is_(True))
    )
    observed_cells.set(result.scalar() or 0)

    result = await db.execute(
        select(func.count()).select_from(Sample).where(Sample.time >= now - timedelta(days=1))
    )
    recent_samples.set(result.scalar() or 0)

    result = await db.execute(
        select(func.count(distinct(Sender.name))).where(Sender.time >= now - timedelta(days=7))
    )
    active_senders.set(result.scalar() or 0)

    return generate_latest(registry)


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(db: AsyncSession = Depends(get_db)) -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    metrics_data = await collect_metrics(db)
    return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
