"""Response payloads built from store rows.

Nothing here writes to a row; every function returns new dicts.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from meshmap.models import CoverageTile, Repeater, Sample
from meshmap.services.coverage import TileCoverage
from meshmap.services.rx_samples import RxRollup

MS_PER_MINUTE = 60_000


def epoch_ms(moment: datetime | None) -> int:
    """Milliseconds since the Unix epoch, 0 for a missing timestamp."""
    if moment is None:
        return 0
    return int(moment.timestamp() * 1000)


def truncate_time(moment: datetime | None) -> int:
    """Compact timestamp: whole minutes since the epoch."""
    return epoch_ms(moment) // MS_PER_MINUTE


def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, frozenset, dict, str)):
        return len(value) == 0
    return False


def omit_empty(item: dict, *optional: str) -> dict:
    """Copy item without the given keys whose values are None or empty.

    Zero and False are kept.
    """
    return {k: v for k, v in item.items() if not (k in optional and _is_empty(v))}


def coverage_pairs(coverage: dict[str, TileCoverage]) -> list[list]:
    """Coverage mapping as [cell, {o, h, a}] pairs, ordered by cell."""
    return [[cell, value.to_dict()] for cell, value in sorted(coverage.items())]


def coverage_item(tile: CoverageTile) -> dict:
    return omit_empty(
        {
            "id": tile.hash,
            "obs": tile.observed,
            "hrd": tile.heard,
            "lost": tile.lost,
            "ut": truncate_time(tile.time),
            "lot": truncate_time(tile.last_observed),
            "lht": truncate_time(tile.last_heard),
            "rptr": sorted(tile.repeaters or []),
            "snr": tile.snr,
            "rssi": tile.rssi,
        },
        "rptr",
        "snr",
        "rssi",
    )


def sample_item(sample: Sample) -> dict:
    return omit_empty(
        {
            "id": sample.hash,
            "time": truncate_time(sample.time),
            "obs": 1 if sample.observed else 0,
            "path": sorted(sample.repeaters or []),
            "snr": sample.snr,
            "rssi": sample.rssi,
        },
        "path",
        "snr",
        "rssi",
    )


def repeater_item(repeater: Repeater) -> dict:
    elevation = repeater.elevation
    return omit_empty(
        {
            "id": repeater.id,
            "hash": repeater.hash,
            "name": repeater.name,
            "time": truncate_time(repeater.time),
            "elev": math.floor(elevation + 0.5) if elevation is not None else None,
        },
        "elev",
    )


def build_nodes(
    tiles: Iterable[CoverageTile],
    samples: Iterable[Sample],
    repeaters: Iterable[Repeater],
) -> dict[str, list[dict]]:
    """The consolidated current-state payload."""
    return {
        "coverage": [coverage_item(t) for t in tiles],
        "samples": [sample_item(s) for s in samples],
        "repeaters": [repeater_item(r) for r in repeaters],
    }


def sample_record(sample: Sample) -> dict:
    """Full sample row for prefix listings."""
    return {
        "hash": sample.hash,
        "time": epoch_ms(sample.time),
        "rssi": sample.rssi,
        "snr": sample.snr,
        "observed": 1 if sample.observed else 0,
        "repeaters": sorted(sample.repeaters or []),
    }


def repeater_record(repeater: Repeater) -> dict:
    return {
        "id": repeater.id,
        "hash": repeater.hash,
        "time": epoch_ms(repeater.time),
        "name": repeater.name,
        "elevation": repeater.elevation,
    }


def rx_rollup_record(rollup: RxRollup) -> dict:
    return {
        "hash": rollup.hash,
        "time": epoch_ms(rollup.time),
        "count": rollup.count,
        "rssi": rollup.rssi,
        "snr": rollup.snr,
        "repeaters": rollup.repeaters,
    }
