"""Utilities package initialization."""

from fleet_sync.utils.time import Clock, format_duration, now_utc

__all__ = ["Clock", "format_duration", "now_utc"]
