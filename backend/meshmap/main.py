"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meshmap import __version__
from meshmap.config import get_settings
from meshmap.database import async_session_maker, close_db, init_db
from meshmap.exceptions import InvalidLocation, MalformedInput, StorageFailure
from meshmap.routers import health_router, ingest_router, maps_router, metrics_router
from meshmap.services.archive import ArchiveService
from meshmap.services.store import MeshStore

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

LOCATION_FIELDS = {"lat", "lon"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Mesh Map...")

    await init_db()
    logger.info("Database initialized")

    app.state.store = MeshStore.from_settings(async_session_maker, settings)

    archive_service = None
    if settings.archive_enabled:
        archive_service = ArchiveService(
            async_session_maker,
            after_days=settings.archive_after_days,
            interval_hours=settings.archive_interval_hours,
        )
        await archive_service.start()

    yield

    # Shutdown
    logger.info("Shutting down Mesh Map...")
    if archive_service:
        await archive_service.stop()
    await close_db()
    logger.info("Shutdown complete")


def _is_location_error(error: dict) -> bool:
    loc = error.get("loc", ())
    return len(loc) >= 2 and loc[0] == "body" and loc[1] in LOCATION_FIELDS


async def invalid_location_handler(request: Request, exc: InvalidLocation) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": f"Invalid location: {exc}"})


async def malformed_input_handler(request: Request, exc: MalformedInput) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": f"Malformed input: {exc}"})


async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report payload validation errors as InvalidLocation or MalformedInput."""
    errors = exc.errors()
    fields = ", ".join(".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors)
    if errors and all(_is_location_error(e) for e in errors):
        return await invalid_location_handler(request, InvalidLocation(fields))
    return await malformed_input_handler(request, MalformedInput(fields))


def create_app(lifespan_handler=lifespan) -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Mesh Map",
        description="Radio coverage collection and aggregation for mesh networks",
        version=__version__,
        lifespan=lifespan_handler,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidLocation, invalid_location_handler)
    app.add_exception_handler(MalformedInput, malformed_input_handler)
    app.add_exception_handler(StorageFailure, storage_failure_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(ingest_router)
    app.include_router(maps_router)

    return app


app = create_app()
