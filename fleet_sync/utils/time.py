"""
Time utilities for the Fleet Sync service.

Every component that reasons about age or windows reads the time through
a Clock, so tests can drive time forward without sleeping.
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


class Clock:
    """Wall clock plus blocking sleep."""

    def now(self) -> datetime:
        """Current timezone-aware UTC time."""
        return now_utc()

    def sleep(self, delay: timedelta, cancel: Optional[threading.Event] = None) -> None:
        """Block the calling thread for ``delay``, or until ``cancel`` is set."""
        seconds = delay.total_seconds()
        if seconds <= 0:
            return
        if cancel is not None:
            cancel.wait(seconds)
        else:
            time.sleep(seconds)


def format_duration(delta: timedelta) -> str:
    """
    Render a timedelta compactly for log lines.

    Example:
        >>> format_duration(timedelta(minutes=2, seconds=5))
        '2m5s'
    """
    total = int(delta.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"
