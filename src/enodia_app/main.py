"""ENODIA - infrastructure map backend.

Main FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from enodia_app.config import Settings, settings
from enodia_app.routers.infrastructure import router as infrastructure_router
from enodia_engine.facade import InfrastructureEngine
from enodia_engine.ingest.overpass import OverpassClient
from enodia_engine.layers.layer import InfrastructureCategory


def create_engine(config: Settings = settings) -> InfrastructureEngine:
    """Build the infrastructure engine from settings."""
    default_enabled = None
    if config.default_enabled_category:
        default_enabled = InfrastructureCategory(config.default_enabled_category)

    client = OverpassClient(
        config.overpass_url,
        timeout=config.overpass_timeout,
        user_agent=config.user_agent,
        area_query_timeout=config.area_query_timeout,
        fetch_query_timeout=config.fetch_query_timeout,
    )
    return InfrastructureEngine.create(
        client,
        area_name=config.area_name,
        admin_level=config.admin_level,
        default_enabled=default_enabled,
        proximity_threshold_m=config.proximity_threshold_m,
        max_retries=config.ingest_max_retries,
        retry_backoff=config.ingest_retry_backoff,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info("  ENODIA v0.1.0 - INITIALIZING")
    logger.info("=" * 60)

    engine = create_engine(settings)
    app.state.infrastructure = engine
    logger.info(
        f"Infrastructure area: {settings.area_name} (admin_level={settings.admin_level})"
    )

    if settings.ingest_on_startup:
        engine.schedule_refresh()
        logger.info("Infrastructure ingestion started in background")

    yield

    await engine.close()
    logger.info("ENODIA shutting down...")


# Create FastAPI app
app = FastAPI(
    title="ENODIA",
    description="Disaster map infrastructure backend",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(infrastructure_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": "0.1.0",
        "system": settings.app_name,
    }
