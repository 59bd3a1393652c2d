"""
API Error Handlers

Custom exceptions and handlers for the plugin generator API
"""

import logging
from datetime import datetime

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from fleet_sync.errors import FleetNotReadyError, UnknownScopeError

logger = logging.getLogger(__name__)


# ============================================================================
# Custom Exceptions
# ============================================================================

class PluginError(Exception):
    """Base exception for plugin generator errors"""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class MissingProjectNumberError(PluginError):
    """Raised when the request does not carry fleetProjectNumber"""
    def __init__(self):
        super().__init__(
            "Missing required parameter FleetProjectNumber",
            status_code=400
        )


class ProjectMismatchError(PluginError):
    """Raised when the request targets another fleet project"""
    def __init__(self):
        super().__init__(
            "Invalid fleetProjectNumber in request, doesn't match "
            "FLEET_PROJECT_NUMBER specified in the Fleet plugin",
            status_code=400
        )


class ScopeNotFoundError(PluginError):
    """Raised when the requested scope is not part of the fleet"""
    def __init__(self, error: UnknownScopeError):
        super().__init__(str(error), status_code=404)


class FleetUnavailableError(PluginError):
    """Raised when the fleet topology has not been loaded yet"""
    def __init__(self, error: FleetNotReadyError):
        super().__init__(f"Fleet not loaded: {error}", status_code=503)


# ============================================================================
# Exception Handlers
# ============================================================================

async def plugin_error_handler(
    request: Request,
    exc: PluginError
) -> JSONResponse:
    """Handle PluginError and subclasses"""
    error_response = ErrorResponse(
        error=exc.message,
        timestamp=int(datetime.now().timestamp())
    )

    logger.warning(
        f"PluginError: {exc.message}",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump()
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors"""
    error_response = ErrorResponse(
        error="Validation error",
        detail=str(exc),
        timestamp=int(datetime.now().timestamp())
    )

    logger.warning(
        f"Validation error: {exc}",
        extra={"path": request.url.path}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response.model_dump()
    )


async def generic_error_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected errors"""
    error_response = ErrorResponse(
        error="Error rendering result",
        detail=str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        timestamp=int(datetime.now().timestamp())
    )

    logger.error(
        f"Unexpected error: {exc}",
        exc_info=True,
        extra={"path": request.url.path}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump()
    )
