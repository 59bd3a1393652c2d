"""
Tests for fleet topology construction.

Tests for:
- Binding resource name parsing
- Membership/scope tenancy maps
- Malformed bindings
"""

import pytest

from fleet_sync.models.fleet import MembershipBinding
from fleet_sync.sync.topology import FleetTopology, build_topology, parse_binding_membership
from tests.conftest import PROJECT_NUMBER


class TestParseBindingMembership:
    """Tests for parse_binding_membership."""

    def test_valid_name(self):
        name = f"projects/{PROJECT_NUMBER}/locations/us-east1/memberships/c1/bindings/b1"

        assert parse_binding_membership(name) == (
            f"projects/{PROJECT_NUMBER}/locations/us-east1/memberships/c1"
        )

    @pytest.mark.parametrize("name", [
        "",
        "projects/p/locations/l/memberships/m",
        "projects/p/locations/l/memberships/m/bindings",
        "projects/p/locations/l/clusters/m/bindings/b",
        "folders/p/locations/l/memberships/m/bindings/b",
        "projects/p/locations/l/memberships/m/bindings/b/extra",
    ])
    def test_invalid_name(self, name):
        with pytest.raises(ValueError, match="Invalid binding resource name format"):
            parse_binding_membership(name)


class TestBuildTopology:
    """Tests for build_topology."""

    def test_maps_both_directions(self, membership_factory, scope_factory, binding_factory):
        memberships = [membership_factory(i) for i in range(3)]
        scopes = [scope_factory("team-a"), scope_factory("team-b")]
        bindings = [
            binding_factory(0, scope="team-a"),
            binding_factory(1, scope="team-a"),
            binding_factory(2, scope="team-b"),
        ]

        topology = build_topology(memberships, scopes, bindings)

        assert topology.members_of("team-a") == [memberships[0].name, memberships[1].name]
        assert topology.members_of("team-b") == [memberships[2].name]
        assert topology.membership_scopes[memberships[0].name] == ["team-a"]

    def test_unbound_entries_present(self, membership_factory, scope_factory):
        topology = build_topology([membership_factory(0)], [scope_factory("empty")], [])

        assert topology.membership_names == [membership_factory(0).name]
        assert topology.has_scope("empty")
        assert topology.members_of("empty") == []

    def test_membership_in_several_scopes(self, membership_factory, scope_factory):
        membership = membership_factory(0)
        bindings = [
            MembershipBinding(
                name=f"{membership.name}/bindings/b{i}",
                scope=f"projects/{PROJECT_NUMBER}/locations/global/scopes/{scope}",
            )
            for i, scope in enumerate(["team-a", "team-b"])
        ]

        topology = build_topology([membership], [scope_factory("team-a"), scope_factory("team-b")], bindings)

        assert topology.membership_scopes[membership.name] == ["team-a", "team-b"]

    def test_malformed_binding_skipped(self, membership_factory, scope_factory, binding_factory):
        bindings = [
            MembershipBinding(name="not/a/binding", scope="projects/p/locations/global/scopes/team-a"),
            binding_factory(0, scope="team-a"),
        ]

        topology = build_topology([membership_factory(0)], [scope_factory("team-a")], bindings)

        assert topology.members_of("team-a") == [membership_factory(0).name]

    def test_binding_without_scope_skipped(self, membership_factory, binding_factory):
        binding = MembershipBinding(name=binding_factory(0).name, scope="")

        topology = build_topology([membership_factory(0)], [], [binding])

        assert topology.membership_scopes[membership_factory(0).name] == []
        assert topology.scope_memberships == {}

    def test_unknown_scope(self):
        topology = FleetTopology()

        assert not topology.has_scope("missing")
        assert topology.members_of("missing") == []

    def test_members_of_returns_copy(self, membership_factory, scope_factory, binding_factory):
        topology = build_topology(
            [membership_factory(0)], [scope_factory("team-a")], [binding_factory(0, scope="team-a")]
        )

        topology.members_of("team-a").clear()

        assert len(topology.members_of("team-a")) == 1
