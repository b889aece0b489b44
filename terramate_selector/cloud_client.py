"""
Terramate Cloud Client

HTTP access to the Terramate Cloud API. Requests are bound to a short
timeout and never retried; any failure surfaces as NetworkError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import CLOUD_API_TIMEOUT
from .credentials import Credential
from .exceptions import ConfigurationError, NetworkError
from .models import RemoteStackStatus

logger = logging.getLogger(__name__)

MEMBERSHIPS_PATH = "/v1/memberships"
STACKS_PATH = "/v1/stacks"
STACKS_PER_PAGE = 100


@dataclass(frozen=True)
class Organization:
    """An organization the authenticated user is a member of."""
    uuid: str
    name: str
    display_name: str = ""
    status: str = ""


class CloudClient:
    """Minimal client for the Terramate Cloud API."""

    def __init__(self, base_url: str, credential: Credential, timeout: float = CLOUD_API_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            base_url: API base URL, e.g. https://api.terramate.io
            credential: Source of bearer tokens
            timeout: Per request timeout in seconds
            session: HTTP session, a new one when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.credential = credential
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.credential.token()}",
            "Accept": "application/json",
        }
        logger.debug(f"GET {url} {params or ''}")
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise NetworkError(f"requesting {url}: {e}") from e
        except ValueError as e:
            raise NetworkError(f"invalid JSON from {url}: {e}") from e

    def member_organizations(self) -> List[Organization]:
        """List the organizations of the authenticated user.

        Raises:
            NetworkError: If the request fails or the payload is malformed
        """
        payload = self._get(MEMBERSHIPS_PATH)
        try:
            return [
                Organization(
                    uuid=item["org_uuid"],
                    name=item["org_name"],
                    display_name=item.get("org_display_name", ""),
                    status=item.get("status", ""),
                )
                for item in payload
            ]
        except (KeyError, TypeError) as e:
            raise NetworkError(f"unexpected memberships response: {e}") from e

    def list_stacks(self, org_uuid: str) -> List[RemoteStackStatus]:
        """List every stack record of an organization, following pagination.

        Raises:
            NetworkError: If a request fails or the payload is malformed
        """
        records = []
        page = 1
        while True:
            payload = self._get(
                f"{STACKS_PATH}/{org_uuid}",
                params={"page": page, "per_page": STACKS_PER_PAGE},
            )
            try:
                items = payload["stacks"]
                records.extend(RemoteStackStatus.from_api(item) for item in items)
                pagination = payload.get("paginated_result") or {}
                total = int(pagination.get("total", len(records)))
            except (KeyError, TypeError, ValueError) as e:
                raise NetworkError(f"unexpected stacks response: {e}") from e

            if not items or len(records) >= total:
                return records
            page += 1


class CloudStatusSource:
    """Stack records of the organization selected for this invocation."""

    def __init__(self, client: CloudClient, organization: str = ""):
        """Initialize the source.

        Args:
            client: Cloud API client
            organization: Organization name to use when the user belongs to several
        """
        self.client = client
        self.organization = organization

    def select_organization(self) -> Organization:
        """Pick the organization whose stacks are listed.

        Raises:
            ConfigurationError: If no organization, or an ambiguous one, is available
        """
        orgs = self.client.member_organizations()
        if self.organization:
            for org in orgs:
                if org.name == self.organization:
                    return org
            raise ConfigurationError(
                f"not a member of organization '{self.organization}', "
                f"available: {[org.name for org in orgs]}"
            )
        if not orgs:
            raise ConfigurationError(
                "You are not part of an organization. Please visit cloud.terramate.io to create an organization."
            )
        if len(orgs) > 1:
            raise ConfigurationError(
                f"member of multiple organizations {[org.name for org in orgs]}, "
                "set TM_CLOUD_ORGANIZATION to pick one"
            )
        return orgs[0]

    def list_stacks(self) -> List[RemoteStackStatus]:
        org = self.select_organization()
        logger.debug(f"listing cloud stacks of organization {org.name} ({org.uuid})")
        return self.client.list_stacks(org.uuid)
