"""
Scheduler package for the periodic Fleet API poll.
"""

from fleet_sync.scheduler.cron import build_scheduler

__all__ = ["build_scheduler"]
