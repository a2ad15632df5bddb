"""Read-only projections consumed by the map frontend."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from meshmap.exceptions import MalformedInput
from meshmap.services import projection
from meshmap.services.store import MeshStore, get_store

router = APIRouter(tags=["maps"])


@router.get("/get-wardrive-coverage")
async def get_wardrive_coverage(store: MeshStore = Depends(get_store)) -> list[list]:
    """Coverage per tile as [tile, {o, h, a}] pairs."""
    coverage = await store.coverage.coverage()
    return projection.coverage_pairs(coverage)


@router.get("/get-samples")
async def get_samples(
    p: str = Query(default="", max_length=12, description="Cell key prefix"),
    store: MeshStore = Depends(get_store),
) -> list[dict]:
    """Samples whose cell starts with the given prefix."""
    samples = await store.samples.list_by_prefix(p.strip().lower())
    return [projection.sample_record(s) for s in samples]


@router.get("/get-nodes")
async def get_nodes(store: MeshStore = Depends(get_store)) -> dict[str, list[dict]]:
    """Consolidated coverage, samples and repeaters."""
    tiles = await store.coverage.list_tiles()
    samples = await store.samples.list_all()
    repeaters = await store.repeaters.list_all()
    return projection.build_nodes(tiles, samples, repeaters)


@router.get("/get-senders")
async def get_senders(
    after: int = Query(default=0, ge=0, description="Cutoff in epoch milliseconds"),
    store: MeshStore = Depends(get_store),
) -> list[dict]:
    """Senders ranked by number of distinct tiles since the cutoff."""
    try:
        cutoff = datetime.fromtimestamp(after / 1000, tz=UTC)
    except (OverflowError, ValueError, OSError) as e:
        raise MalformedInput(f"after out of range: {after}") from e
    return await store.senders.rank_since(cutoff)


@router.get("/get-rx-samples")
async def get_rx_samples(store: MeshStore = Depends(get_store)) -> list[dict]:
    """Per-cell rollup of received-packet samples."""
    rollups = await store.rx_samples.rollup()
    return [projection.rx_rollup_record(r) for r in rollups]


@router.get("/get-repeaters")
async def get_repeaters(store: MeshStore = Depends(get_store)) -> list[dict]:
    """All repeater sightings."""
    repeaters = await store.repeaters.list_all()
    return [projection.repeater_record(r) for r in repeaters]
