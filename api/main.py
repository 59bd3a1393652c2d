"""
Main FastAPI Application

Argo CD plugin generator backed by the GKE Fleet API
"""

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError

from api.errors import (
    PluginError,
    generic_error_handler,
    plugin_error_handler,
    validation_error_handler,
)
from api.routes import router
from fleet_sync.config import get_settings
from fleet_sync.core.logging_config import setup_logging
from fleet_sync.fleet.client import FleetClient
from fleet_sync.scheduler import build_scheduler
from fleet_sync.sync.fleet_sync import FleetSync
from fleet_sync.sync.secrets import InMemorySecretStore

logger = logging.getLogger(__name__)


def create_fleet_sync() -> FleetSync:
    """Build the FleetSync from settings"""
    settings = get_settings()
    return FleetSync(
        client=FleetClient.from_settings(settings),
        secret_store=InMemorySecretStore(),
        config=settings.protection_config(),
        secret_namespace=settings.secret_namespace,
    )


# ============================================================================
# Lifespan Events
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    setup_logging()
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")

    fleet_sync = create_fleet_sync()
    cancel = threading.Event()

    # Build the initial fleet topology before handling requests
    try:
        await run_in_threadpool(fleet_sync.refresh, cancel)
    except Exception as e:
        logger.error(f"Initial fleet refresh failed: {e}")
        fleet_sync.close()
        raise

    app.state.fleet_sync = fleet_sync

    scheduler = build_scheduler(fleet_sync, settings, cancel=cancel)
    scheduler.start()
    logger.info("APScheduler started")

    logger.info(f"Fleet project {settings.fleet_project_number}: ready to accept requests")

    yield

    logger.info(f"Shutting down {settings.app_name}...")

    # Stop an in-flight refresh before its HTTP client is closed
    cancel.set()
    scheduler.shutdown(wait=True)
    logger.info("APScheduler stopped")

    fleet_sync.close()
    logger.info("Fleet API client closed")


# ============================================================================
# Create FastAPI Application
# ============================================================================

app = FastAPI(
    title="Fleet Sync API",
    version="1.0.0",
    description="""
    Argo CD ApplicationSet plugin generator for GKE Fleet.

    Serves fleet member clusters (optionally filtered by team scope) and
    keeps Argo CD cluster secrets in sync. Fleet API responses are guarded
    against transient incomplete results before anything is pruned.
    """,
    lifespan=lifespan,
)

# Exception handlers
app.add_exception_handler(PluginError, plugin_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, generic_error_handler)

app.include_router(router, prefix="/api/v1")
