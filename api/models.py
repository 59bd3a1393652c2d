"""
API Request/Response Models

Pydantic models for the Argo CD plugin generator and diagnostics endpoints
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Plugin Generator Request
# ============================================================================

class PluginParameters(BaseModel):
    """Parameters set in the ApplicationSet spec for this generator"""
    model_config = ConfigDict(populate_by_name=True)

    fleet_project_number: str = Field(
        "",
        alias="fleetProjectNumber",
        description="Fleet host project number; must match the plugin's project"
    )
    scope_id: str = Field(
        "",
        alias="scopeId",
        description="Only return clusters bound to this scope when set"
    )


class PluginInput(BaseModel):
    """Input block of a plugin generator request"""
    parameters: PluginParameters = Field(default_factory=PluginParameters)


class PluginRequest(BaseModel):
    """Request sent by the ApplicationSet controller to the plugin generator"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "applicationSetName": "fleet-apps",
                "input": {
                    "parameters": {
                        "fleetProjectNumber": "123456789012",
                        "scopeId": "team-a"
                    }
                }
            }
        },
    )

    application_set_name: str = Field("", alias="applicationSetName")
    input: PluginInput = Field(default_factory=PluginInput)


# ============================================================================
# Plugin Generator Response
# ============================================================================

class PluginResultItem(BaseModel):
    """One cluster returned to the ApplicationSet"""
    model_config = ConfigDict(populate_by_name=True)

    server: str
    name: str
    name_short: str = Field(..., alias="nameShort")


class PluginOutput(BaseModel):
    """Output block of a plugin generator response"""
    parameters: List[PluginResultItem]


class PluginResponse(BaseModel):
    """Response returned to the ApplicationSet controller"""
    output: PluginOutput


# ============================================================================
# Diagnostics
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="'healthy' once the fleet topology is loaded")
    version: str
    fleet_loaded: bool
    timestamp: int


class ProtectionStatusResponse(BaseModel):
    """Protection state of every Fleet API stream"""
    streams: Dict[str, Dict[str, Any]]


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    timestamp: int = Field(..., description="Error timestamp (unix)")
