"""Fleet topology and cluster secret synchronization."""

from fleet_sync.sync.fleet_sync import FleetSync, RefreshReport
from fleet_sync.sync.secrets import ClusterSecret, InMemorySecretStore, SecretReconciler, SecretStore
from fleet_sync.sync.topology import FleetTopology, build_topology

__all__ = [
    "FleetSync",
    "RefreshReport",
    "ClusterSecret",
    "InMemorySecretStore",
    "SecretReconciler",
    "SecretStore",
    "FleetTopology",
    "build_topology",
]
