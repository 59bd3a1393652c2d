"""GKE Fleet API access."""

from fleet_sync.fleet.client import FleetClient

__all__ = ["FleetClient"]
