"""
Exception hierarchy for the Fleet Sync service.

Hard failures (the upstream cannot be read and nothing safe can be served)
are exceptions. Suspect data is never an exception; it is reported through
a degraded FetchResult instead.
"""


class FleetSyncError(Exception):
    """Base exception for Fleet Sync errors."""
    pass


class FleetAPIError(FleetSyncError):
    """Raised when a Fleet API request fails (transport, auth, quota)."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class UpstreamFetchError(FleetSyncError):
    """Raised when every fetch attempt failed and no valid cache exists."""

    def __init__(self, stream: str, attempts: int):
        self.stream = stream
        self.attempts = attempts
        super().__init__(
            f"Failed to fetch {stream} after {attempts} attempt(s) and no valid cache is available"
        )


class FetchCancelledError(FleetSyncError):
    """Raised when the caller cancelled a fetch; never retried."""
    pass


class FleetNotReadyError(FleetSyncError):
    """Raised when plugin results are requested before the first refresh."""

    def __init__(self):
        super().__init__("fleet is empty")


class UnknownScopeError(FleetSyncError):
    """Raised when a plugin request names a scope the fleet does not have."""

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"unknown scope ID to the Fleet plugin: {scope_id}")


class SecretAlreadyExistsError(FleetSyncError):
    """Raised by a SecretStore when creating a secret that exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"secret {name} already exists")


class SecretNotFoundError(FleetSyncError):
    """Raised by a SecretStore when updating or deleting a missing secret."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"secret {name} not found")
