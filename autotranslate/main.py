"""
Auto-translate Service - Main Application

This is the entry point for the FastAPI application.
It handles:
- Provider registration from configuration
- The after-save translation hook (through AutoTranslateService)
- REST API endpoints (providers, languages, on-demand translation)
- Runtime setting changes propagated over redis
"""
from contextlib import asynccontextmanager
import asyncio
import logging
from datetime import datetime, UTC

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from autotranslate import __version__
from autotranslate.api import router as api_router
from autotranslate.config.redis import close_redis
from autotranslate.config.settings import settings
from autotranslate.models.database import init_db
from autotranslate.services.autotranslate_service import AutoTranslateService
from autotranslate.services.settings_store import SettingsStore, subscribe_to_setting_changes
from autotranslate.services.translation.exceptions import ProviderImportError
from autotranslate.services.translation.registry import (
    import_provider,
    init_registry,
    shutdown_registry,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting Auto-translate Service...")

    await init_db()
    logger.info("✅ Database tables created")

    settings_store = SettingsStore.from_settings(settings)
    registry = init_registry()
    service = AutoTranslateService(registry=registry, settings_store=settings_store)
    app.state.autotranslate = service

    for path in settings.AUTOTRANSLATE_PROVIDERS:
        try:
            service.register_provider(import_provider(path))
        except ProviderImportError as e:
            logger.error(f"Could not load translation provider {path}: {e}")
        except Exception:
            logger.exception(f"Could not register translation provider {path}")
    logger.info(f"✅ {len(service.orchestrators)} translation provider(s) registered")

    sync_task = None
    if settings.SETTINGS_SYNC_ENABLED:
        sync_task = asyncio.create_task(subscribe_to_setting_changes(settings_store))
        logger.info("✅ Settings subscription started")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    if sync_task is not None:
        sync_task.cancel()
        try:
            await sync_task
        except asyncio.CancelledError:
            pass

    await service.shutdown()
    app.state.autotranslate = None
    shutdown_registry()
    await close_redis()


app = FastAPI(
    title="Auto-translate Service",
    description="Marker-protected machine translation for chat messages",
    version=__version__,
    lifespan=lifespan
)

# Include REST API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Auto-translate Service",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    service = getattr(app.state, "autotranslate", None)
    active = service.get_active() if service else None
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "active_provider": active.name if active else None,
        "pending_translations": sum(o.pending_count for o in service.orchestrators) if service else 0,
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
