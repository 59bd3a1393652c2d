"""
API Routes

Argo CD plugin generator endpoint plus health and protection diagnostics
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.dependencies import get_api_settings, get_fleet_sync
from api.errors import (
    FleetUnavailableError,
    MissingProjectNumberError,
    ProjectMismatchError,
    ScopeNotFoundError,
)
from api.models import (
    HealthResponse,
    PluginOutput,
    PluginRequest,
    PluginResponse,
    PluginResultItem,
    ProtectionStatusResponse,
)
from fleet_sync.config import Settings
from fleet_sync.errors import FleetNotReadyError, UnknownScopeError
from fleet_sync.sync.fleet_sync import FleetSync

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Health Check
# ============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check whether the fleet topology has been loaded"
)
async def health_check(
    fleet_sync: FleetSync = Depends(get_fleet_sync),
    settings: Settings = Depends(get_api_settings),
) -> HealthResponse:
    """Health check endpoint"""
    loaded = fleet_sync.is_ready
    return HealthResponse(
        status="healthy" if loaded else "unhealthy",
        version=settings.app_version,
        fleet_loaded=loaded,
        timestamp=int(datetime.now(timezone.utc).timestamp())
    )


# ============================================================================
# Plugin Generator
# ============================================================================

@router.post(
    "/getparams.execute",
    response_model=PluginResponse,
    summary="Argo CD plugin generator",
    description="Return the fleet clusters, optionally limited to one scope"
)
async def get_params(
    request: PluginRequest,
    fleet_sync: FleetSync = Depends(get_fleet_sync),
) -> PluginResponse:
    """Render plugin generator parameters for an ApplicationSet"""
    params = request.input.parameters

    if not params.fleet_project_number:
        raise MissingProjectNumberError()
    if params.fleet_project_number != fleet_sync.project_number:
        raise ProjectMismatchError()

    try:
        results = fleet_sync.plugin_results(params.scope_id)
    except UnknownScopeError as e:
        raise ScopeNotFoundError(e) from e
    except FleetNotReadyError as e:
        raise FleetUnavailableError(e) from e

    logger.info(
        f"Plugin request from '{request.application_set_name}': {len(results)} cluster(s)",
        extra={
            "application_set": request.application_set_name,
            "scope_id": params.scope_id,
            "cluster_count": len(results),
        }
    )

    return PluginResponse(
        output=PluginOutput(
            parameters=[
                PluginResultItem(server=r.server, name=r.name, name_short=r.name_short)
                for r in results
            ]
        )
    )


# ============================================================================
# Protection Diagnostics
# ============================================================================

@router.get(
    "/protection",
    response_model=ProtectionStatusResponse,
    summary="Protection status",
    description="Detector history, cache state and counters of each Fleet API stream"
)
async def protection_status(
    fleet_sync: FleetSync = Depends(get_fleet_sync),
) -> ProtectionStatusResponse:
    """Protection diagnostics endpoint"""
    return ProtectionStatusResponse(streams=fleet_sync.protection_status())
