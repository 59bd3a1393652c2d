"""
FleetSync - Periodically polls the Fleet API and keeps derived state current.

Each refresh:
1. Reads memberships, scopes and membership bindings through one
   ProtectedFetcher per stream.
2. Rebuilds the tenancy maps served to the Argo CD plugin generator.
3. Reconciles Argo CD cluster secrets, pruning only when every stream
   returned trusted live data.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fleet_sync.config import ProtectionConfig
from fleet_sync.errors import FleetNotReadyError, UnknownScopeError
from fleet_sync.fleet.client import FleetClient
from fleet_sync.models.fleet import PluginResult
from fleet_sync.protection.fetcher import FetchResult, FetchStatus, ProtectedFetcher
from fleet_sync.sync.secrets import ReconcileReport, SecretReconciler, SecretStore, render_cluster_secret
from fleet_sync.sync.topology import FleetTopology, build_topology
from fleet_sync.utils.time import Clock


logger = logging.getLogger(__name__)


@dataclass
class RefreshReport:
    """Outcome of one FleetSync refresh."""

    streams: Dict[str, FetchResult] = field(default_factory=dict)
    topology_updated: bool = False
    reconcile: Optional[ReconcileReport] = None

    @property
    def degraded(self) -> bool:
        return any(result.degraded for result in self.streams.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "degraded": self.degraded,
            "topology_updated": self.topology_updated,
            "streams": {name: result.to_dict() for name, result in self.streams.items()},
            "reconcile": self.reconcile.to_dict() if self.reconcile else None,
        }


class FleetSync:
    """Fleet topology cache plus cluster secret reconciliation."""

    def __init__(
        self,
        client: FleetClient,
        secret_store: SecretStore,
        config: ProtectionConfig,
        secret_namespace: str = "argocd",
        clock: Optional[Clock] = None,
    ):
        self.client = client
        self.project_number = client.project_number
        self.secret_namespace = secret_namespace
        self.reconciler = SecretReconciler(secret_store)

        self.memberships = ProtectedFetcher("memberships", client.list_memberships, config, clock=clock)
        self.scopes = ProtectedFetcher("scopes", client.list_scopes, config, clock=clock)
        self.bindings = ProtectedFetcher(
            "membership bindings", client.list_membership_bindings, config, clock=clock
        )

        self._topology: Optional[FleetTopology] = None
        self._topology_lock = threading.Lock()

    @property
    def topology(self) -> Optional[FleetTopology]:
        with self._topology_lock:
            return self._topology

    @property
    def is_ready(self) -> bool:
        return self.topology is not None

    def refresh(self, cancel: Optional[threading.Event] = None) -> RefreshReport:
        """
        Poll the Fleet API, rebuild the topology and reconcile secrets.

        Raises:
            UpstreamFetchError: If a stream failed and has no valid cache
            FetchCancelledError: If cancelled
        """
        report = RefreshReport()
        report.streams["memberships"] = self.memberships.fetch(cancel)
        report.streams["scopes"] = self.scopes.fetch(cancel)
        report.streams["bindings"] = self.bindings.fetch(cancel)

        memberships = report.streams["memberships"]
        topology = build_topology(
            memberships.records,
            report.streams["scopes"].records,
            report.streams["bindings"].records,
        )

        suspect = [
            name for name, result in report.streams.items()
            if result.status is FetchStatus.SUSPECT
        ]

        with self._topology_lock:
            if suspect and self._topology is not None:
                logger.warning(
                    f"Keeping previous fleet topology: suspect data in {suspect}",
                    extra={"suspect_streams": suspect}
                )
            else:
                self._topology = topology
                report.topology_updated = True

        desired = [
            render_cluster_secret(m, self.project_number, self.secret_namespace)
            for m in memberships.records
        ]
        report.reconcile = self.reconciler.reconcile(desired, degraded=report.degraded)

        logger.info(
            f"Fleet refresh complete: {len(memberships.records)} memberships, "
            f"degraded={report.degraded}",
            extra=report.to_dict()
        )
        return report

    def plugin_results(self, scope_id: str = "") -> List[PluginResult]:
        """
        Clusters to hand to the Argo CD plugin generator.

        Args:
            scope_id: Only include memberships bound to this scope; all
                memberships when empty

        Raises:
            FleetNotReadyError: Before the first successful refresh
            UnknownScopeError: If scope_id is not a fleet scope
        """
        topology = self.topology
        if topology is None:
            raise FleetNotReadyError()

        if scope_id:
            if not topology.has_scope(scope_id):
                raise UnknownScopeError(scope_id)
            names = topology.members_of(scope_id)
        else:
            names = topology.membership_names

        return [PluginResult.from_membership(name, self.project_number) for name in names]

    def protection_status(self) -> Dict[str, Any]:
        """Per-stream protection diagnostics."""
        return {
            fetcher.name: fetcher.status()
            for fetcher in (self.memberships, self.scopes, self.bindings)
        }

    def close(self) -> None:
        self.client.close()
