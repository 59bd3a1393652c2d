"""
Pytest Configuration and Fixtures.

Provides shared fixtures for testing the fleet sync service.
"""

import logging
import os
import threading
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

os.environ.setdefault("FLEET_PROJECT_NUMBER", "123456789012")

from fleet_sync.config import ProtectionConfig, Settings
from fleet_sync.models.fleet import Membership, MembershipBinding, Scope


PROJECT_NUMBER = "123456789012"


# ============================================================================
# Time Fixtures
# ============================================================================

class ManualClock:
    """Clock that only moves when told to; sleep advances it instantly."""

    def __init__(self, start: datetime = None):
        self.current = start or datetime(2026, 1, 30, 12, 0, 0, tzinfo=timezone.utc)
        self.sleeps: List[timedelta] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, delay: timedelta, cancel: threading.Event = None) -> None:
        self.sleeps.append(delay)
        self.current += delay

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    """A manual clock starting at a fixed instant."""
    return ManualClock()


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with default values."""
    return Settings(
        fleet_project_number=PROJECT_NUMBER,
        environment="test",
        fleet_api_endpoint="https://fleet.test/v1",
        reconcile_interval_seconds=10,
    )


@pytest.fixture
def protection_config() -> ProtectionConfig:
    """Production defaults for the protection layer."""
    return ProtectionConfig(
        max_retries=3,
        retry_base_delay=timedelta(seconds=2),
        cache_max_age=timedelta(minutes=60),
        detection_window=timedelta(minutes=10),
        oscillation_threshold=2,
        drop_threshold=0.3,
    )


@pytest.fixture
def restore_root_handlers():
    """Undo handlers added to the root logger by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


# ============================================================================
# Fleet Resource Fixtures
# ============================================================================

def make_membership(index: int, region: str = "us-central1") -> Membership:
    return Membership(
        name=f"projects/{PROJECT_NUMBER}/locations/{region}/memberships/cluster{index}"
    )


def make_binding(index: int, scope: str = None, region: str = "us-central1") -> MembershipBinding:
    scope = scope or f"scope{index}"
    return MembershipBinding(
        name=(
            f"projects/{PROJECT_NUMBER}/locations/{region}/memberships/"
            f"cluster{index}/bindings/binding{index}"
        ),
        scope=f"projects/{PROJECT_NUMBER}/locations/global/scopes/{scope}",
    )


def make_scope(scope_id: str) -> Scope:
    return Scope(name=f"projects/{PROJECT_NUMBER}/locations/global/scopes/{scope_id}")


@pytest.fixture
def membership_factory():
    """Factory to create memberships by index."""
    return make_membership


@pytest.fixture
def binding_factory():
    """Factory to create membership bindings by index."""
    return make_binding


@pytest.fixture
def scope_factory():
    """Factory to create scopes by ID."""
    return make_scope


# ============================================================================
# Fake Fleet API
# ============================================================================

class FakeFleetClient:
    """
    Simulates Fleet API behavior.

    Each list method returns `count` generated items, or the next entry of
    a configured pattern, or raises while `fail` is set.
    """

    def __init__(self, count: int = 12, project_number: str = PROJECT_NUMBER):
        self.project_number = project_number
        self.count = count
        self.pattern: List[int] = []
        self.fail = False
        self.calls = {"memberships": 0, "scopes": 0, "bindings": 0}
        self.closed = False

    def _next_count(self, stream: str) -> int:
        self.calls[stream] += 1
        if self.fail:
            raise ConnectionError("simulated API error")
        if self.pattern:
            idx = (self.calls[stream] - 1) % len(self.pattern)
            return self.pattern[idx]
        return self.count

    def list_memberships(self) -> List[Membership]:
        return [make_membership(i) for i in range(self._next_count("memberships"))]

    def list_scopes(self) -> List[Scope]:
        return [make_scope(f"scope{i}") for i in range(self._next_count("scopes"))]

    def list_membership_bindings(self) -> List[MembershipBinding]:
        return [make_binding(i) for i in range(self._next_count("bindings"))]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_fleet_client() -> FakeFleetClient:
    """Fake Fleet API returning 12 of everything."""
    return FakeFleetClient(count=12)
