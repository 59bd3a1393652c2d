"""
Argo CD cluster secret reconciliation.

Renders one cluster secret per fleet membership and brings a SecretStore
in line with that desired set. Pruning is the only destructive step and is
skipped whenever the fleet data behind the desired set is degraded.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Protocol

from fleet_sync.errors import SecretAlreadyExistsError, SecretNotFoundError
from fleet_sync.models.fleet import Membership, cluster_secret_name, connect_gateway_url


logger = logging.getLogger(__name__)

SECRET_TYPE_LABEL = "argocd.argoproj.io/secret-type"
SECRET_TYPE_CLUSTER = "cluster"
MANAGED_BY_ANNOTATION = "fleet.gke.io/managed-by-fleet-plugin"

# Argo CD authenticates to member clusters through the argocd-k8s-auth exec plugin
CLUSTER_CONFIG = {
    "execProviderConfig": {
        "command": "argocd-k8s-auth",
        "args": ["gcp"],
        "apiVersion": "client.authentication.k8s.io/v1beta1",
    },
    "tlsClientConfig": {
        "insecure": False,
        "caData": "",
    },
}


@dataclass(frozen=True)
class ClusterSecret:
    """An Argo CD cluster secret."""

    name: str
    namespace: str
    string_data: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def is_managed(self) -> bool:
        return self.annotations.get(MANAGED_BY_ANNOTATION) == "true"


def render_cluster_secret(
    membership: Membership,
    project_number: str,
    namespace: str = "argocd",
) -> ClusterSecret:
    """Render the cluster secret for one membership."""
    name = cluster_secret_name(membership.membership_id, membership.region, project_number)
    return ClusterSecret(
        name=name,
        namespace=namespace,
        string_data={
            "name": name,
            "server": connect_gateway_url(project_number, membership.region, membership.membership_id),
            "config": json.dumps(CLUSTER_CONFIG, indent=2),
        },
        labels={SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER},
        annotations={MANAGED_BY_ANNOTATION: "true"},
    )


class SecretStore(Protocol):
    """Where cluster secrets live (the Argo CD namespace in production)."""

    def list(self, label_selector: Dict[str, str]) -> List[ClusterSecret]:
        ...

    def create(self, secret: ClusterSecret) -> None:
        ...

    def update(self, secret: ClusterSecret) -> None:
        ...

    def delete(self, name: str) -> None:
        ...


class InMemorySecretStore:
    """Thread-safe SecretStore kept in process memory."""

    def __init__(self, secrets: Iterable[ClusterSecret] = ()):
        self._secrets: Dict[str, ClusterSecret] = {s.name: s for s in secrets}
        self._lock = threading.Lock()

    def list(self, label_selector: Dict[str, str]) -> List[ClusterSecret]:
        with self._lock:
            return [
                s for s in self._secrets.values()
                if all(s.labels.get(k) == v for k, v in label_selector.items())
            ]

    def create(self, secret: ClusterSecret) -> None:
        with self._lock:
            if secret.name in self._secrets:
                raise SecretAlreadyExistsError(secret.name)
            self._secrets[secret.name] = secret

    def update(self, secret: ClusterSecret) -> None:
        with self._lock:
            if secret.name not in self._secrets:
                raise SecretNotFoundError(secret.name)
            self._secrets[secret.name] = secret

    def delete(self, name: str) -> None:
        with self._lock:
            if name not in self._secrets:
                raise SecretNotFoundError(name)
            del self._secrets[name]

    def get(self, name: str) -> ClusterSecret:
        with self._lock:
            if name not in self._secrets:
                raise SecretNotFoundError(name)
            return self._secrets[name]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._secrets)


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation pass."""

    applied: List[str] = field(default_factory=list)
    pruned: List[str] = field(default_factory=list)
    prune_skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "applied": self.applied,
            "pruned": self.pruned,
            "prune_skipped": self.prune_skipped,
        }


class SecretReconciler:
    """Create-or-update desired secrets, prune stale managed ones."""

    def __init__(self, store: SecretStore):
        self.store = store

    def reconcile(self, desired: Iterable[ClusterSecret], degraded: bool = False) -> ReconcileReport:
        """
        Apply the desired secrets and prune managed secrets not in the set.

        Args:
            desired: Secrets that should exist
            degraded: Fleet data is cached or suspect; pruning is skipped

        Returns:
            ReconcileReport listing applied, pruned and prune-skipped names
        """
        desired_by_name = {s.name: s for s in desired}
        report = ReconcileReport()

        for name, secret in sorted(desired_by_name.items()):
            try:
                self.store.create(secret)
            except SecretAlreadyExistsError:
                self.store.update(secret)
            report.applied.append(name)

        logger.info(f"Successfully applied {len(report.applied)} cluster secret(s)")

        existing = self.store.list({SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER})
        stale = sorted(
            s.name for s in existing
            if s.is_managed and s.name not in desired_by_name
        )

        if degraded:
            report.prune_skipped = stale
            if stale:
                logger.warning(
                    f"Fleet data is degraded, skipping prune of {len(stale)} secret(s): {stale}",
                    extra={"prune_skipped": stale}
                )
            return report

        for name in stale:
            self.store.delete(name)
            report.pruned.append(name)
            logger.info(f"Pruned cluster secret {name}: membership no longer in fleet")

        return report
