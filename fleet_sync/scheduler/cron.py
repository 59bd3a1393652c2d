"""
APScheduler configuration for the periodic Fleet API poll.

The refresh job runs every `reconcile_interval_seconds`. It is a blocking
call, so it runs on a one-thread APScheduler thread pool; `max_instances=1`
serializes cycles so an overrunning poll never overlaps the next one.
Setting the shared cancel event stops an in-flight refresh between Fleet API
calls and cuts its retry backoff short.
"""

import logging
import threading
from typing import Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fleet_sync.config import Settings, get_settings
from fleet_sync.errors import FetchCancelledError
from fleet_sync.sync.fleet_sync import FleetSync

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_fleet"


def build_scheduler(
    fleet_sync: FleetSync,
    settings: Settings = None,
    cancel: Optional[threading.Event] = None,
) -> AsyncIOScheduler:
    """
    Build and configure the scheduler with the fleet refresh job.

    Args:
        fleet_sync: FleetSync instance refreshed by the job
        settings: Configuration settings (default: get_settings())
        cancel: Event set on shutdown to abandon a running refresh

    Returns:
        AsyncIOScheduler: Configured scheduler ready to start
    """
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler(
        timezone="UTC",
        executors={"default": ThreadPoolExecutor(max_workers=1)},
    )

    scheduler.add_job(
        func=refresh_fleet,
        args=[fleet_sync, cancel],
        trigger=IntervalTrigger(seconds=settings.reconcile_interval_seconds),
        id=REFRESH_JOB_ID,
        name="Refresh Fleet",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        f"APScheduler configured: {REFRESH_JOB_ID} every {settings.reconcile_interval_seconds}s"
    )
    return scheduler


def refresh_fleet(fleet_sync: FleetSync, cancel: Optional[threading.Event] = None) -> None:
    """Scheduled job: refresh the fleet, logging failures for the next cycle to retry."""
    try:
        report = fleet_sync.refresh(cancel)
        if report.degraded:
            logger.warning(
                "Fleet refresh served degraded data; cluster secret pruning skipped",
                extra=report.to_dict()
            )
    except FetchCancelledError as e:
        logger.info(f"Fleet refresh cancelled: {e}")
    except Exception as e:
        logger.error(f"Error refreshing fleet: {e}", exc_info=True)
