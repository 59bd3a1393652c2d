"""
API Dependencies

Dependency injection for FastAPI
"""

from functools import lru_cache

from fastapi import Request

from fleet_sync.config import Settings, get_settings
from fleet_sync.sync.fleet_sync import FleetSync


@lru_cache
def get_api_settings() -> Settings:
    """Get cached settings instance"""
    return get_settings()


def get_fleet_sync(request: Request) -> FleetSync:
    """FleetSync created during application startup"""
    return request.app.state.fleet_sync
