"""
Response caching for Fleet API list calls.

Holds the last response accepted as trustworthy so it can be served while
the live API is failing or returning suspect data.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from fleet_sync.utils.time import Clock, format_duration


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache(Generic[T]):
    """
    Last-known-good record set with an age-based validity window.

    The held records are only ever replaced wholesale. Expired data is
    never deleted, just reported as invalid on read.
    """

    def __init__(self, max_age: timedelta, clock: Optional[Clock] = None):
        self.max_age = max_age
        self._clock = clock or Clock()
        self._records: Optional[Tuple[T, ...]] = None
        self._stored_at: Optional[datetime] = None
        self._lock = threading.Lock()

    def store(self, records: Sequence[T]) -> None:
        """Replace the cached records and reset their age."""
        snapshot = tuple(records)
        with self._lock:
            self._records = snapshot
            self._stored_at = self._clock.now()

    def fetch(self) -> Tuple[Optional[List[T]], bool]:
        """
        Return cached records if still valid.

        Returns:
            (records, True) when fresh; (None, False) when empty or older
            than max_age. An age of exactly max_age is still valid.
        """
        with self._lock:
            if self._records is None:
                return None, False

            age = self._clock.now() - self._stored_at
            if age > self.max_age:
                return None, False

            records = list(self._records)

        logger.info(
            f"Using cached response: {len(records)} items (age: {format_duration(age)})",
            extra={"cached_items": len(records), "cache_age_seconds": age.total_seconds()}
        )
        return records, True

    def age(self) -> timedelta:
        """Age of the cached data, zero when empty."""
        with self._lock:
            if self._records is None:
                return timedelta(0)
            return self._clock.now() - self._stored_at

    def info(self) -> str:
        """Human-readable cache state for logging."""
        with self._lock:
            if self._records is None:
                return "Cache: empty"

            age = self._clock.now() - self._stored_at
            return (
                f"Cache: {len(self._records)} items, age={format_duration(age)}, "
                f"expires in={format_duration(self.max_age - age)}"
            )
