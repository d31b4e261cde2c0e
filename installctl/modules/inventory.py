"""
Client for the assisted-installer inventory service REST API.
"""
import logging
from typing import Any, Dict, Iterable, Optional

import requests

from installctl.models import HostData

logger = logging.getLogger(__name__)

API_PREFIX = "/api/assisted-install/v1"
AUTH_HEADER = "X-Secret-Key"


class InventoryError(Exception):
    """Base exception for inventory client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InventoryClient:
    """Client for the cluster and host endpoints of the inventory service."""

    def __init__(
        self,
        url: str,
        cluster_id: str,
        pull_secret_token: str,
        verify: Any = True,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the inventory client.

        Args:
            url: Inventory service base URL (e.g. 'https://api.example.com')
            cluster_id: ID of the cluster this controller runs in
            pull_secret_token: Token sent in the X-Secret-Key header
            verify: requests ``verify`` value (bool or CA bundle path)
            timeout: Per request timeout in seconds
            session: Pre-built session, mainly for tests
        """
        self.url = url.rstrip('/')
        self.cluster_id = cluster_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({AUTH_HEADER: pull_secret_token})
        self.session.verify = verify
        self.logger = logging.getLogger(f"{__name__}.InventoryClient")

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.url}{API_PREFIX}{path}"
        self.logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise InventoryError(f"{method} {path} failed: {e}") from e
        if not response.ok:
            raise InventoryError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: requests.Response, expected: Optional[type] = None) -> Any:
        try:
            payload = response.json()
        except ValueError as e:
            raise InventoryError(f"Invalid JSON in inventory response: {e}") from e
        if expected is None:
            return payload
        # null is how the service sends an empty collection
        if payload is None:
            return expected()
        if not isinstance(payload, expected):
            raise InventoryError(
                f"Unexpected inventory response: expected {expected.__name__}, got {type(payload).__name__}"
            )
        return payload

    def _cluster_path(self, cluster_id: Optional[str] = None) -> str:
        return f"/clusters/{cluster_id or self.cluster_id}"

    def get_hosts(self, skipped_statuses: Iterable[str] = ()) -> Dict[str, HostData]:
        """
        List the cluster hosts, keyed by lower-cased hostname.

        Hosts without any name cannot be matched to a node and are left out.

        Args:
            skipped_statuses: Host statuses to leave out of the result

        Returns:
            Mapping of hostname to HostData

        Raises:
            InventoryError: On transport errors or a malformed response
        """
        skipped = {str(getattr(s, 'value', s)) for s in skipped_statuses}
        hosts = self._json(self._request("GET", f"{self._cluster_path()}/hosts"), list)
        result: Dict[str, HostData] = {}
        for host in hosts:
            if not isinstance(host, dict):
                raise InventoryError(f"Malformed host in inventory response: {host!r}")
            if host.get('status') in skipped:
                continue
            try:
                data = HostData.from_api(host)
            except (KeyError, TypeError, AttributeError) as e:
                raise InventoryError(f"Malformed host in inventory response: {e!r}") from e
            if not data.hostname:
                self.logger.warning(f"Skipping host {data.id}, it has no hostname")
                continue
            result[data.hostname] = data
        return result

    def update_host_install_progress(self, host_id: str, stage: str, info: str = "") -> None:
        """Set the current installation stage of a host."""
        body = {
            "current_stage": getattr(stage, 'value', stage),
            "progress_info": info,
        }
        self._request("PUT", f"{self._cluster_path()}/hosts/{host_id}/progress", json=body)

    def get_cluster(self) -> Dict[str, Any]:
        return self._json(self._request("GET", self._cluster_path()), dict)

    def get_cluster_status(self) -> str:
        cluster = self.get_cluster()
        status = cluster.get('status')
        if not status:
            raise InventoryError(f"Cluster {self.cluster_id} has no status")
        return status

    def upload_ingress_ca(self, ingress_ca: str, cluster_id: str) -> None:
        """Upload the router CA bundle so the service can build the admin kubeconfig."""
        self._request("POST", f"{self._cluster_path(cluster_id)}/uploads/ingress-cert", json=ingress_ca)

    def complete_installation(self, cluster_id: str, is_success: bool, error_info: str = "") -> None:
        """Report the end of the installation."""
        body = {"is_success": is_success, "error_info": error_info}
        self._request("POST", f"{self._cluster_path(cluster_id)}/actions/complete_installation", json=body)


def get_inventory_client(config) -> InventoryClient:
    """
    Build an InventoryClient from a validated ControllerConfig.

    Args:
        config: ControllerConfig instance

    Returns:
        InventoryClient instance
    """
    logger.debug(f"Initializing inventory client with URL: {config.inventory_url}")
    return InventoryClient(
        url=config.inventory_url,
        cluster_id=config.cluster_id,
        pull_secret_token=config.pull_secret_token,
        verify=config.tls_verify,
        timeout=config.api_timeout,
    )
