"""Write endpoints for samples, repeaters and receive samples."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from meshmap.schemas.observations import (
    RepeaterSubmission,
    RxSampleSubmission,
    SampleSubmission,
)
from meshmap.services.geocell import fine_cell, parse_location, to_coarse
from meshmap.services.store import MeshStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ingest"])


@router.post("/put-sample", response_class=PlainTextResponse)
async def put_sample(
    data: SampleSubmission,
    store: MeshStore = Depends(get_store),
) -> str:
    """Merge a sample into its cell and record the sender for the day."""
    lat, lon = parse_location(data.lat, data.lon)
    cell = fine_cell(lat, lon)

    await store.samples.upsert(
        cell,
        rssi=data.rssi,
        snr=data.snr,
        observed=data.observed,
        path=data.path,
    )

    if data.sender and data.sender.strip():
        await store.senders.record(to_coarse(cell), data.sender)

    return "OK"


@router.post("/put-repeater", response_class=PlainTextResponse)
async def put_repeater(
    data: RepeaterSubmission,
    store: MeshStore = Depends(get_store),
) -> str:
    """Record a repeater sighting."""
    lat, lon = parse_location(data.lat, data.lon)
    await store.repeaters.upsert(
        data.id,
        fine_cell(lat, lon),
        data.name,
        lat=lat,
        lon=lon,
        elevation=data.elevation,
    )
    return "OK"


@router.post("/put-rx-sample", response_class=PlainTextResponse)
async def put_rx_sample(
    data: RxSampleSubmission,
    store: MeshStore = Depends(get_store),
) -> str:
    """Append a received-packet sample to its cell."""
    lat, lon = parse_location(data.lat, data.lon)
    await store.rx_samples.append(
        fine_cell(lat, lon),
        rssi=data.rssi,
        snr=data.snr,
        repeater=data.repeater,
    )
    return "OK"
