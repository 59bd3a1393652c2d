"""
Fleet topology - membership/scope tenancy maps.

Builds one map from membership resource names to the scope IDs the
membership cluster is bound to, and the reverse map from scope IDs to
membership resource names.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from fleet_sync.models.fleet import Membership, MembershipBinding, Scope


logger = logging.getLogger(__name__)


@dataclass
class FleetTopology:
    """Tenancy maps derived from one Fleet API refresh."""

    membership_scopes: Dict[str, List[str]] = field(default_factory=dict)
    scope_memberships: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def membership_names(self) -> List[str]:
        return sorted(self.membership_scopes)

    def members_of(self, scope_id: str) -> List[str]:
        return list(self.scope_memberships.get(scope_id, []))

    def has_scope(self, scope_id: str) -> bool:
        return scope_id in self.scope_memberships


def parse_binding_membership(binding_name: str) -> str:
    """
    Extract the membership resource name from a binding resource name.

    Args:
        binding_name: `projects/{p}/locations/{l}/memberships/{m}/bindings/{b}`

    Returns:
        `projects/{p}/locations/{l}/memberships/{m}`

    Raises:
        ValueError: If the name does not have the expected format
    """
    parts = binding_name.split("/")
    if (
        len(parts) != 8
        or parts[0] != "projects"
        or parts[2] != "locations"
        or parts[4] != "memberships"
        or parts[6] != "bindings"
    ):
        raise ValueError(f"Invalid binding resource name format: {binding_name}")
    return "/".join(parts[:6])


def build_topology(
    memberships: Iterable[Membership],
    scopes: Iterable[Scope],
    bindings: Iterable[MembershipBinding],
) -> FleetTopology:
    """
    Build tenancy maps from the three Fleet API list results.

    Every membership and scope appears in its map even without bindings.
    Bindings with malformed names or scopes are logged and skipped.
    """
    topology = FleetTopology()

    for membership in memberships:
        topology.membership_scopes[membership.name] = []

    for scope in scopes:
        topology.scope_memberships[scope.scope_id] = []

    for binding in bindings:
        try:
            membership = parse_binding_membership(binding.name)
        except ValueError as e:
            logger.warning(str(e))
            continue

        scope_id = binding.scope.rsplit("/", 1)[-1]
        if not scope_id:
            logger.warning(f"Invalid scope in binding ({binding.name}): {binding.scope!r}")
            continue

        topology.membership_scopes.setdefault(membership, []).append(scope_id)
        topology.scope_memberships.setdefault(scope_id, []).append(membership)

    logger.debug(
        f"Built topology: {len(topology.membership_scopes)} memberships, "
        f"{len(topology.scope_memberships)} scopes"
    )
    return topology
