"""
FleetClient - Reads fleet topology from the GKE Hub (Fleet) REST API.

Lists memberships, scopes and membership bindings of the fleet host
project, following `nextPageToken` pagination. Every failure is raised as
FleetAPIError so the protection layer can retry it. Entries with malformed
resource names are logged and skipped.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from fleet_sync.config import Settings
from fleet_sync.errors import FleetAPIError
from fleet_sync.models.fleet import Membership, MembershipBinding, Scope


logger = logging.getLogger(__name__)

T = TypeVar("T")


class FleetClient:
    """Thin synchronous client for the Fleet list endpoints."""

    def __init__(
        self,
        project_number: str,
        http_client: httpx.Client,
        base_url: str = "https://gkehub.googleapis.com/v1",
    ):
        self.project_number = project_number
        self.base_url = base_url.rstrip("/")
        self._http = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "FleetClient":
        """Build a client with its own HTTP connection pool."""
        headers = {}
        if settings.fleet_access_token:
            headers["Authorization"] = f"Bearer {settings.fleet_access_token}"

        http_client = httpx.Client(
            timeout=httpx.Timeout(settings.fleet_request_timeout_seconds),
            headers=headers,
        )
        return cls(
            project_number=settings.fleet_project_number,
            http_client=http_client,
            base_url=settings.fleet_api_endpoint,
        )

    def close(self) -> None:
        self._http.close()

    def list_memberships(self) -> List[Membership]:
        """Fetch the memberships of the fleet in all locations."""
        parent = f"projects/{self.project_number}/locations/-"
        return self._list(f"{parent}/memberships", "resources", Membership.from_api)

    def list_scopes(self) -> List[Scope]:
        """Fetch the fleet scopes (always global)."""
        parent = f"projects/{self.project_number}/locations/global"
        return self._list(f"{parent}/scopes", "scopes", Scope.from_api)

    def list_membership_bindings(self) -> List[MembershipBinding]:
        """Fetch the bindings of every membership."""
        parent = f"projects/{self.project_number}/locations/-/memberships/-"
        return self._list(f"{parent}/bindings", "membershipBindings", MembershipBinding.from_api)

    def _list(
        self,
        path: str,
        items_key: str,
        parse: Callable[[Dict[str, Any]], T],
    ) -> List[T]:
        """
        Collect all pages of a list call.

        Raises:
            FleetAPIError: On transport errors, error statuses or bad payloads
        """
        url = f"{self.base_url}/{path}"
        items: List[T] = []
        page_token: Optional[str] = None

        while True:
            params = {"pageToken": page_token} if page_token else None

            try:
                response = self._http.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as e:
                raise FleetAPIError(
                    f"Fleet API returned {e.response.status_code} for {path}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise FleetAPIError(f"Fleet API request failed for {path}: {e}") from e
            except ValueError as e:
                raise FleetAPIError(f"Fleet API returned invalid JSON for {path}") from e

            try:
                for item in payload.get(items_key, []):
                    try:
                        items.append(parse(item))
                    except ValueError as e:
                        logger.warning(f"Skipping malformed {items_key} entry: {e}")
            except (KeyError, TypeError, AttributeError) as e:
                raise FleetAPIError(f"Unexpected Fleet API payload for {path}: {e}") from e

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Listed {len(items)} {items_key} from {path}")
        return items
