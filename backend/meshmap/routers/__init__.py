"""API routers."""

from meshmap.routers.health import router as health_router
from meshmap.routers.ingest import router as ingest_router
from meshmap.routers.maps import router as maps_router
from meshmap.routers.metrics import router as metrics_router

__all__ = [
    "health_router",
    "ingest_router",
    "maps_router",
    "metrics_router",
]
