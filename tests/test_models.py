"""
Tests for fleet resource models.
"""

import pytest

from fleet_sync.models.fleet import (
    Membership,
    MembershipBinding,
    PluginResult,
    Scope,
    cluster_secret_name,
    connect_gateway_url,
    parse_membership_name,
)
from tests.conftest import PROJECT_NUMBER


class TestMembership:
    """Tests for Membership."""

    def test_name_parts(self):
        membership = Membership.from_api(
            {"name": f"projects/{PROJECT_NUMBER}/locations/asia-east1/memberships/prod-1", "state": {}}
        )

        assert membership.region == "asia-east1"
        assert membership.membership_id == "prod-1"

    def test_hashable_value(self, membership_factory):
        assert {membership_factory(1), membership_factory(1)} == {membership_factory(1)}

    @pytest.mark.parametrize("name", [
        "garbage",
        "",
        "projects/1/locations/us/memberships",
        "projects/1/locations/us/clusters/a",
        "projects/1/locations//memberships/a",
        "projects/1/locations/us/memberships/a/bindings/b",
    ])
    def test_malformed_name_rejected(self, name):
        with pytest.raises(ValueError, match="Invalid membership resource name format"):
            Membership(name)

    def test_parse_membership_name(self):
        assert parse_membership_name("projects/1/locations/us/memberships/a") == ("1", "us", "a")


class TestScopeAndBinding:
    """Tests for Scope and MembershipBinding."""

    def test_scope_id(self, scope_factory):
        assert scope_factory("team-a").scope_id == "team-a"
        assert Scope.from_api({"name": "projects/p/locations/global/scopes/x"}).scope_id == "x"

    def test_binding_without_scope(self):
        binding = MembershipBinding.from_api({"name": "projects/p/locations/l/memberships/m/bindings/b"})

        assert binding.scope == ""


class TestPluginResult:
    """Tests for PluginResult and naming helpers."""

    def test_from_membership(self):
        result = PluginResult.from_membership(
            f"projects/{PROJECT_NUMBER}/locations/us-west1/memberships/edge", PROJECT_NUMBER
        )

        assert result.to_dict() == {
            "server": (
                "https://us-west1-connectgateway.googleapis.com/v1/projects/"
                f"{PROJECT_NUMBER}/locations/us-west1/gkeMemberships/edge"
            ),
            "name": f"edge.us-west1.{PROJECT_NUMBER}",
            "nameShort": "edge",
        }

    def test_global_gateway(self):
        assert connect_gateway_url("1", "global", "m") == (
            "https://connectgateway.googleapis.com/v1/projects/1/locations/global/gkeMemberships/m"
        )

    def test_secret_name(self):
        assert cluster_secret_name("m", "global", "1") == "m.global.1"
