"""
Fleet resource models.

Membership, Scope and MembershipBinding mirror the GKE Hub API resources
the service reads. PluginResult is one entry of the Argo CD plugin
generator output.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


# Secret and plugin result name: {membership_id}.{region}.{project_number}
CLUSTER_SECRET_NAME_TEMPLATE = "{membership_id}.{region}.{project_number}"


def parse_membership_name(name: str) -> Tuple[str, str, str]:
    """
    Split a membership resource name into its parts.

    Args:
        name: `projects/{p}/locations/{region}/memberships/{id}`

    Returns:
        (project, region, membership_id)

    Raises:
        ValueError: If the name does not have the expected format
    """
    parts = name.split("/")
    if (
        len(parts) != 6
        or parts[0] != "projects"
        or parts[2] != "locations"
        or parts[4] != "memberships"
        or not all(parts)
    ):
        raise ValueError(f"Invalid membership resource name format: {name}")
    return parts[1], parts[3], parts[5]


@dataclass(frozen=True)
class Membership:
    """A fleet member cluster, `projects/{p}/locations/{l}/memberships/{m}`."""

    name: str

    def __post_init__(self):
        """Validate the resource name."""
        parse_membership_name(self.name)

    @property
    def region(self) -> str:
        return parse_membership_name(self.name)[1]

    @property
    def membership_id(self) -> str:
        return parse_membership_name(self.name)[2]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Membership":
        return cls(name=data["name"])


@dataclass(frozen=True)
class Scope:
    """A fleet team scope, `projects/{p}/locations/global/scopes/{s}`."""

    name: str

    @property
    def scope_id(self) -> str:
        return self.name.rsplit("/", 1)[-1]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Scope":
        return cls(name=data["name"])


@dataclass(frozen=True)
class MembershipBinding:
    """
    Binds a membership to a scope.

    name: `projects/{p}/locations/{l}/memberships/{m}/bindings/{b}`
    scope: full scope resource name
    """

    name: str
    scope: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "MembershipBinding":
        return cls(name=data["name"], scope=data.get("scope", ""))


@dataclass(frozen=True)
class PluginResult:
    """One cluster as returned to the Argo CD ApplicationSet plugin generator."""

    server: str
    name: str
    name_short: str

    @classmethod
    def from_membership(cls, membership_name: str, project_number: str) -> "PluginResult":
        """
        Build the result for a membership resource name.

        Args:
            membership_name: `projects/{p}/locations/{region}/memberships/{id}`
            project_number: Fleet host project number

        Raises:
            ValueError: If membership_name is malformed
        """
        _, region, membership_id = parse_membership_name(membership_name)
        return cls(
            server=connect_gateway_url(project_number, region, membership_id),
            name=cluster_secret_name(membership_id, region, project_number),
            name_short=membership_id,
        )

    def to_dict(self) -> Dict[str, str]:
        return {"server": self.server, "name": self.name, "nameShort": self.name_short}


def cluster_secret_name(membership_id: str, region: str, project_number: str) -> str:
    return CLUSTER_SECRET_NAME_TEMPLATE.format(
        membership_id=membership_id, region=region, project_number=project_number
    )


def connect_gateway_url(project_number: str, region: str, membership_id: str) -> str:
    """Connect Gateway endpoint for a membership; global memberships use the global host."""
    path = f"v1/projects/{project_number}/locations/{region}/gkeMemberships/{membership_id}"
    if region == "global":
        return f"https://connectgateway.googleapis.com/{path}"
    return f"https://{region}-connectgateway.googleapis.com/{path}"
