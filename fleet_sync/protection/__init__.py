"""
Transient-fetch protection for Fleet API responses.

Prevents cluster secret pruning caused by incomplete API responses:
- ResponseCache: last trusted response with a max age
- TransientDetector: oscillation and sudden-drop pattern analysis
- ProtectedFetcher: retries, detection and cache fallback per record stream
"""

from fleet_sync.protection.cache import ResponseCache
from fleet_sync.protection.detector import Snapshot, TransientDetector
from fleet_sync.protection.fetcher import FetchResult, FetchStats, FetchStatus, ProtectedFetcher

__all__ = [
    "ResponseCache",
    "Snapshot",
    "TransientDetector",
    "FetchResult",
    "FetchStats",
    "FetchStatus",
    "ProtectedFetcher",
]
