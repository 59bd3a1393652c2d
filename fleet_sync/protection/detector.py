"""
TransientDetector - Identifies transient Fleet API issues via pattern analysis.

Keeps a short, time-windowed history of observed item counts and applies
two independent rules to the newest observation:

- Oscillation: the count keeps changing within the window.
- Sudden drop: the count fell sharply below the window's running average.

A positive classification means "do not trust this response"; it never
raises and never holds incident state between calls.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fleet_sync.config import ProtectionConfig
from fleet_sync.utils.time import Clock, format_duration


logger = logging.getLogger(__name__)

MIN_SNAPSHOTS_FOR_DETECTION = 3


@dataclass(frozen=True)
class Snapshot:
    """A point-in-time item count of one upstream response."""

    count: int
    observed_at: datetime

    def __str__(self) -> str:
        return f"{self.count}@{self.observed_at.strftime('%H:%M:%S')}"


class TransientDetector:
    """
    Classifies the newest item count as trustworthy or suspect.

    Thread-safe: history is only touched while holding the instance lock.
    """

    def __init__(
        self,
        window: timedelta,
        oscillation_threshold: int,
        drop_threshold: float,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize detector.

        Args:
            window: How far back to look for patterns (e.g. 10 minutes)
            oscillation_threshold: Count changes indicating instability (e.g. 2)
            drop_threshold: Fractional decrease indicating a sudden drop (e.g. 0.3)
            clock: Time source (default: wall clock)
        """
        self.window = window
        self.oscillation_threshold = oscillation_threshold
        self.drop_threshold = drop_threshold
        self._clock = clock or Clock()
        self._history: List[Snapshot] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ProtectionConfig, clock: Optional[Clock] = None) -> "TransientDetector":
        return cls(
            window=config.detection_window,
            oscillation_threshold=config.oscillation_threshold,
            drop_threshold=config.drop_threshold,
            clock=clock,
        )

    def classify(self, current_count: int) -> Tuple[bool, str]:
        """
        Record the current count and classify it.

        Args:
            current_count: Number of items in the latest response

        Returns:
            (is_transient, reason); reason is empty when not transient

        Raises:
            ValueError: If current_count is negative
        """
        if current_count < 0:
            raise ValueError(f"current_count must be >= 0, got {current_count}")

        with self._lock:
            now = self._clock.now()
            self._history.append(Snapshot(count=current_count, observed_at=now))

            cutoff = now - self.window
            self._history = [s for s in self._history if s.observed_at > cutoff]

            if len(self._history) < MIN_SNAPSHOTS_FOR_DETECTION:
                return False, ""

            # Both rules always run so the reason carries all evidence
            reasons = []

            oscillation = self._check_oscillation()
            if oscillation:
                reasons.append(oscillation)

            drop = self._check_sudden_drop(current_count)
            if drop:
                reasons.append(drop)

        if not reasons:
            return False, ""

        return True, "; ".join(reasons)

    def _check_oscillation(self) -> str:
        changes = sum(
            1
            for previous, current in zip(self._history, self._history[1:])
            if previous.count != current.count
        )

        if changes < self.oscillation_threshold:
            return ""

        return (
            f"Oscillation detected: {changes} count changes in last "
            f"{format_duration(self.window)}. Pattern: {self._format_pattern()}"
        )

    def _check_sudden_drop(self, current_count: int) -> str:
        previous = self._history[:-1]
        avg_prev = sum(s.count for s in previous) / len(previous)

        if avg_prev <= 0:
            return ""

        decrease = (avg_prev - current_count) / avg_prev
        if decrease <= self.drop_threshold:
            return ""

        return (
            f"Sudden drop detected: {decrease * 100:.0f}% decrease "
            f"(avg {avg_prev:.0f} to {current_count})"
        )

    def _format_pattern(self) -> str:
        return " → ".join(str(s) for s in self._history)

    def history(self) -> List[Snapshot]:
        """Return a copy of the current (pruned) history for diagnostics."""
        with self._lock:
            return list(self._history)
