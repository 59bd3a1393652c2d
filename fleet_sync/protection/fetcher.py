"""
ProtectedFetcher - Wraps a raw Fleet API list call with protection.

Turns a possibly unreliable upstream read into a record set the
reconciliation step can act on safely:

1. Hard failures are retried with linear backoff.
2. Successful responses are classified by the TransientDetector.
3. Suspect responses and exhausted retries fall back to the last trusted
   response held in the ResponseCache.

Results that did not come from a trusted live read are flagged degraded so
the consumer can skip destructive actions (pruning) for that cycle.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from fleet_sync.config import ProtectionConfig
from fleet_sync.errors import FetchCancelledError, UpstreamFetchError
from fleet_sync.protection.cache import ResponseCache
from fleet_sync.protection.detector import TransientDetector
from fleet_sync.utils.time import Clock, format_duration


logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchStatus(str, Enum):
    """Where the records of a FetchResult came from."""

    LIVE = "LIVE"          # trusted live response
    CACHED = "CACHED"      # last trusted response served instead of live data
    SUSPECT = "SUSPECT"    # suspect live response, no valid cache to fall back to


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Records returned by one protected fetch."""

    records: List[T]
    status: FetchStatus
    reason: str = ""

    @property
    def degraded(self) -> bool:
        """True when consumers must not take destructive actions."""
        return self.status is not FetchStatus.LIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": len(self.records),
            "status": self.status.value,
            "degraded": self.degraded,
            "reason": self.reason,
        }


@dataclass
class FetchStats:
    """Counters kept per protected stream."""

    live: int = 0
    cache_fallbacks: int = 0
    suspect_served: int = 0
    transient_detections: int = 0
    retries: int = 0
    failures: int = 0
    last_reason: str = field(default="")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "live": self.live,
            "cache_fallbacks": self.cache_fallbacks,
            "suspect_served": self.suspect_served,
            "transient_detections": self.transient_detections,
            "retries": self.retries,
            "failures": self.failures,
            "last_reason": self.last_reason,
        }


class ProtectedFetcher(Generic[T]):
    """
    Protected access to one logical upstream record stream.

    Owns one ResponseCache and one TransientDetector. No lock is held while
    the raw fetch runs.
    """

    def __init__(
        self,
        name: str,
        raw_fetch: Callable[[], Sequence[T]],
        config: ProtectionConfig,
        cache: Optional[ResponseCache] = None,
        detector: Optional[TransientDetector] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            name: Stream name used in logs (e.g. "membership bindings")
            raw_fetch: Idempotent, side-effect-free upstream read
            config: Protection tunables
            cache: Cache to use (default: built from config)
            detector: Detector to use (default: built from config)
            clock: Time source and sleep used for backoff
        """
        self.name = name
        self.config = config
        self._raw_fetch = raw_fetch
        self._clock = clock or Clock()
        self.cache = cache or ResponseCache(config.cache_max_age, clock=self._clock)
        self.detector = detector or TransientDetector.from_config(config, clock=self._clock)
        self._stats = FetchStats()
        self._stats_lock = threading.Lock()

    @property
    def stats(self) -> FetchStats:
        with self._stats_lock:
            return FetchStats(**vars(self._stats))

    def fetch(self, cancel: Optional[threading.Event] = None) -> FetchResult[T]:
        """
        Fetch the stream with retries, detection and cache fallback.

        Args:
            cancel: Set by the caller to abandon the fetch; also ends a backoff wait early

        Returns:
            FetchResult with status LIVE, CACHED or SUSPECT

        Raises:
            UpstreamFetchError: If all attempts failed and the cache is invalid
            FetchCancelledError: If the fetch was cancelled
        """
        try:
            records = self._fetch_with_retries(cancel)
        except UpstreamFetchError as e:
            cached, valid = self.cache.fetch()
            if not valid:
                self._count(failures=1)
                logger.error(
                    f"{self.name}: all fetch attempts failed and cache is unavailable",
                    extra={"stream": self.name, "attempts": e.attempts}
                )
                raise

            reason = f"{e.attempts} fetch attempt(s) failed: {e.__cause__}"
            self._count(cache_fallbacks=1, last_reason=reason)
            logger.warning(
                f"{self.name}: serving cached response after fetch failure ({self.cache.info()})",
                extra={"stream": self.name, "attempts": e.attempts, "cached_items": len(cached)}
            )
            return FetchResult(records=cached, status=FetchStatus.CACHED, reason=reason)

        return self._classify(records)

    def _fetch_with_retries(self, cancel: Optional[threading.Event]) -> List[T]:
        attempts = self.config.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            if cancel is not None and cancel.is_set():
                raise FetchCancelledError(f"{self.name}: fetch cancelled")

            try:
                return list(self._raw_fetch())
            except FetchCancelledError:
                raise
            except Exception as e:
                if cancel is not None and cancel.is_set():
                    raise FetchCancelledError(f"{self.name}: fetch cancelled") from e
                last_error = e

            if attempt == attempts:
                break

            delay = self.config.retry_base_delay * attempt
            self._count(retries=1)
            logger.warning(
                f"{self.name}: fetch attempt {attempt}/{attempts} failed: {last_error}. "
                f"Retrying in {format_duration(delay)}",
                extra={"stream": self.name, "attempt": attempt, "delay_seconds": delay.total_seconds()}
            )
            self._clock.sleep(delay, cancel)

        raise UpstreamFetchError(self.name, attempts) from last_error

    def _classify(self, records: List[T]) -> FetchResult[T]:
        is_transient, reason = self.detector.classify(len(records))

        if not is_transient:
            self.cache.store(records)
            self._count(live=1)
            return FetchResult(records=records, status=FetchStatus.LIVE)

        self._count(transient_detections=1, last_reason=reason)
        logger.warning(
            f"{self.name}: transient API issue detected: {reason}",
            extra={"stream": self.name, "live_items": len(records)}
        )

        cached, valid = self.cache.fetch()
        if valid:
            if _same_records(cached, records):
                # Live data matches the last trusted response
                self.cache.store(records)
                self._count(live=1)
                logger.info(
                    f"{self.name}: live response matches cache, accepting it",
                    extra={"stream": self.name, "live_items": len(records)}
                )
                return FetchResult(records=records, status=FetchStatus.LIVE, reason=reason)

            self._count(cache_fallbacks=1)
            logger.warning(
                f"{self.name}: using cached response instead of {len(records)} live items "
                f"({self.cache.info()})",
                extra={"stream": self.name, "live_items": len(records), "cached_items": len(cached)}
            )
            return FetchResult(records=cached, status=FetchStatus.CACHED, reason=reason)

        self._count(suspect_served=1)
        logger.warning(
            f"{self.name}: no valid cache, serving suspect live response "
            f"({len(records)} items) as degraded",
            extra={"stream": self.name, "live_items": len(records)}
        )
        return FetchResult(records=records, status=FetchStatus.SUSPECT, reason=reason)

    def _count(self, last_reason: Optional[str] = None, **increments: int) -> None:
        with self._stats_lock:
            for key, value in increments.items():
                setattr(self._stats, key, getattr(self._stats, key) + value)
            if last_reason is not None:
                self._stats.last_reason = last_reason

    def status(self) -> Dict[str, Any]:
        """Diagnostic view of this stream's protection state."""
        return {
            "stream": self.name,
            "cache": self.cache.info(),
            "cache_age_seconds": self.cache.age().total_seconds(),
            "history": [
                {"count": s.count, "observed_at": s.observed_at.isoformat()}
                for s in self.detector.history()
            ],
            "stats": self.stats.to_dict(),
        }


def _same_records(cached: List[T], live: List[T]) -> bool:
    """Multiset equality by ``==``; records need not be hashable."""
    if len(cached) != len(live):
        return False
    if cached == live:
        return True

    remaining = list(cached)
    for record in live:
        try:
            remaining.remove(record)
        except ValueError:
            return False
    return True
