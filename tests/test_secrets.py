"""
Tests for cluster secret rendering and reconciliation.

Pruning must only happen when the desired set came from trusted data.
"""

import json

import pytest

from fleet_sync.errors import SecretAlreadyExistsError, SecretNotFoundError
from fleet_sync.sync.secrets import (
    MANAGED_BY_ANNOTATION,
    SECRET_TYPE_CLUSTER,
    SECRET_TYPE_LABEL,
    ClusterSecret,
    InMemorySecretStore,
    SecretReconciler,
    render_cluster_secret,
)
from tests.conftest import PROJECT_NUMBER, make_membership


def desired_secrets(count):
    return [render_cluster_secret(make_membership(i), PROJECT_NUMBER) for i in range(count)]


def unmanaged_secret(name="hand-made"):
    return ClusterSecret(
        name=name,
        namespace="argocd",
        labels={SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER},
    )


class TestRenderClusterSecret:
    """Tests for render_cluster_secret."""

    def test_regional_membership(self, membership_factory):
        secret = render_cluster_secret(membership_factory(3, region="europe-west1"), PROJECT_NUMBER)

        assert secret.name == f"cluster3.europe-west1.{PROJECT_NUMBER}"
        assert secret.namespace == "argocd"
        assert secret.string_data["name"] == secret.name
        assert secret.string_data["server"] == (
            "https://europe-west1-connectgateway.googleapis.com/v1/projects/"
            f"{PROJECT_NUMBER}/locations/europe-west1/gkeMemberships/cluster3"
        )
        assert secret.labels == {SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER}
        assert secret.annotations == {MANAGED_BY_ANNOTATION: "true"}
        assert secret.is_managed

    def test_global_membership(self, membership_factory):
        secret = render_cluster_secret(membership_factory(0, region="global"), PROJECT_NUMBER, "gitops")

        assert secret.namespace == "gitops"
        assert secret.string_data["server"].startswith("https://connectgateway.googleapis.com/")

    def test_exec_provider_config(self, membership_factory):
        secret = render_cluster_secret(membership_factory(0), PROJECT_NUMBER)

        config = json.loads(secret.string_data["config"])
        assert config["execProviderConfig"]["command"] == "argocd-k8s-auth"
        assert config["execProviderConfig"]["args"] == ["gcp"]
        assert config["tlsClientConfig"]["insecure"] is False


class TestInMemorySecretStore:
    """Tests for InMemorySecretStore."""

    def test_create_existing_raises(self):
        store = InMemorySecretStore([unmanaged_secret()])

        with pytest.raises(SecretAlreadyExistsError):
            store.create(unmanaged_secret())

    def test_update_missing_raises(self):
        with pytest.raises(SecretNotFoundError):
            InMemorySecretStore().update(unmanaged_secret())

    def test_delete_missing_raises(self):
        with pytest.raises(SecretNotFoundError):
            InMemorySecretStore().delete("missing")

    def test_list_by_label(self):
        other = ClusterSecret(name="repo", namespace="argocd", labels={SECRET_TYPE_LABEL: "repository"})
        store = InMemorySecretStore([unmanaged_secret(), other])

        listed = store.list({SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER})

        assert [s.name for s in listed] == ["hand-made"]


class TestSecretReconciler:
    """Tests for SecretReconciler."""

    def test_creates_missing_secrets(self):
        store = InMemorySecretStore()

        report = SecretReconciler(store).reconcile(desired_secrets(3))

        assert len(report.applied) == 3
        assert store.names() == sorted(s.name for s in desired_secrets(3))

    def test_updates_existing_secrets(self):
        stale = ClusterSecret(
            name=desired_secrets(1)[0].name,
            namespace="argocd",
            string_data={"server": "https://old"},
            labels={SECRET_TYPE_LABEL: SECRET_TYPE_CLUSTER},
            annotations={MANAGED_BY_ANNOTATION: "true"},
        )
        store = InMemorySecretStore([stale])

        SecretReconciler(store).reconcile(desired_secrets(1))

        assert store.get(stale.name).string_data["server"] != "https://old"

    def test_prunes_removed_memberships(self):
        store = InMemorySecretStore(desired_secrets(3))

        report = SecretReconciler(store).reconcile(desired_secrets(2))

        removed = desired_secrets(3)[2].name
        assert report.pruned == [removed]
        assert removed not in store.names()

    def test_degraded_skips_prune(self):
        store = InMemorySecretStore(desired_secrets(12))

        report = SecretReconciler(store).reconcile(desired_secrets(6), degraded=True)

        assert report.pruned == []
        assert len(report.prune_skipped) == 6
        assert len(store.names()) == 12

    def test_unmanaged_secrets_never_pruned(self):
        store = InMemorySecretStore([unmanaged_secret()])

        report = SecretReconciler(store).reconcile(desired_secrets(1))

        assert "hand-made" in store.names()
        assert report.pruned == []

    def test_report_to_dict(self):
        report = SecretReconciler(InMemorySecretStore()).reconcile(desired_secrets(1))

        assert report.to_dict() == {
            "applied": [desired_secrets(1)[0].name],
            "pruned": [],
            "prune_skipped": [],
        }
