"""Geohash-based cell keys at node (fine) and tile (coarse) resolution.

A geohash interleaves latitude and longitude bits and emits them base-32,
so nearby points share a prefix and every shorter hash is the parent tile
of the longer ones. The coarse key is always taken as a prefix of the fine
key rather than encoded separately.
"""

import math

import pygeohash

from meshmap.config import get_settings
from meshmap.exceptions import InvalidLocation


def _to_coordinate(value, name: str) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidLocation(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidLocation(f"{name} is not a number: {value!r}") from e
    if not math.isfinite(number):
        raise InvalidLocation(f"{name} is not finite: {value!r}")
    return number


def parse_location(lat, lon) -> tuple[float, float]:
    """Parse and range-check a latitude/longitude pair."""
    latitude = _to_coordinate(lat, "lat")
    longitude = _to_coordinate(lon, "lon")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidLocation(f"lat out of range: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidLocation(f"lon out of range: {longitude}")
    return latitude, longitude


def fine_cell(lat, lon, precision: int | None = None) -> str:
    """Node-level cell key for a location."""
    latitude, longitude = parse_location(lat, lon)
    if precision is None:
        precision = get_settings().fine_precision
    return pygeohash.encode(latitude, longitude, precision=precision)


def coarse_cell(lat, lon, precision: int | None = None) -> str:
    """Tile-level cell key for a location (prefix of its fine cell)."""
    settings = get_settings()
    return to_coarse(fine_cell(lat, lon, settings.fine_precision), precision)


def to_coarse(cell: str, precision: int | None = None) -> str:
    """Truncate a fine cell key to its containing tile."""
    if precision is None:
        precision = get_settings().coarse_precision
    return cell[:precision]
