"""
Thin wrapper over the kubernetes client exposing what the controller needs.
"""
import functools
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

logger = logging.getLogger(__name__)

METAL3_GROUP = "metal3.io"
METAL3_VERSION = "v1alpha1"
BMH_PLURAL = "baremetalhosts"
BMH_NAMESPACE = "openshift-machine-api"
PROVISIONING_PLURAL = "provisionings"

ETCD_GROUP = "operator.openshift.io"
ETCD_VERSION = "v1"
ETCD_PLURAL = "etcds"
ETCD_NAME = "cluster"


class KubeClientError(Exception):
    """Raised when a Kubernetes API call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _translate_errors(func):
    """Re-raise ApiException as KubeClientError."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ApiException as e:
            raise KubeClientError(
                f"{func.__name__} failed: {e.status} {e.reason}", status=e.status
            ) from e
    return wrapper


class KubeClient:
    """Kubernetes operations used by the reconcilers."""

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        self.core = client.CoreV1Api(api_client)
        self.certificates = client.CertificatesV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)

    @_translate_errors
    def list_nodes(self) -> List[Any]:
        return self.core.list_node().items

    @_translate_errors
    def get_pods(self, namespace: str, labels: Dict[str, str]) -> List[Any]:
        selector = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return self.core.list_namespaced_pod(namespace, label_selector=selector).items

    @_translate_errors
    def get_pod_logs(self, namespace: str, pod_name: str, tail_lines: int) -> str:
        return self.core.read_namespaced_pod_log(
            name=pod_name, namespace=namespace, tail_lines=tail_lines
        )

    @_translate_errors
    def list_csrs(self) -> List[Any]:
        return self.certificates.list_certificate_signing_request().items

    @_translate_errors
    def approve_csr(self, csr) -> None:
        """Add an Approved condition to the CSR through the approval sub-resource."""
        condition = client.V1CertificateSigningRequestCondition(
            type="Approved",
            status="True",
            reason="NodeCSRApprove",
            message="This CSR was approved by the installation controller",
            last_update_time=datetime.now(timezone.utc),
        )
        if csr.status is None:
            csr.status = client.V1CertificateSigningRequestStatus()
        csr.status.conditions = list(csr.status.conditions or []) + [condition]
        self.certificates.replace_certificate_signing_request_approval(
            name=csr.metadata.name, body=csr
        )

    @_translate_errors
    def is_metal_provisioning_exists(self) -> bool:
        """Whether a metal3 Provisioning resource exists in the cluster."""
        try:
            result = self.custom.list_cluster_custom_object(
                group=METAL3_GROUP, version=METAL3_VERSION, plural=PROVISIONING_PLURAL
            )
        except ApiException as e:
            # CRD not installed
            if e.status == 404:
                return False
            raise
        return len(result.get("items", [])) > 0

    @_translate_errors
    def list_bmhs(self) -> List[Dict[str, Any]]:
        result = self.custom.list_namespaced_custom_object(
            group=METAL3_GROUP,
            version=METAL3_VERSION,
            namespace=BMH_NAMESPACE,
            plural=BMH_PLURAL,
        )
        return result.get("items", [])

    @_translate_errors
    def update_bmh_status(self, bmh: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the status sub-resource and refresh the local resourceVersion."""
        metadata = bmh["metadata"]
        updated = self.custom.replace_namespaced_custom_object_status(
            group=METAL3_GROUP,
            version=METAL3_VERSION,
            namespace=metadata.get("namespace", BMH_NAMESPACE),
            plural=BMH_PLURAL,
            name=metadata["name"],
            body=bmh,
        )
        self._refresh_resource_version(bmh, updated)
        return bmh

    @_translate_errors
    def update_bmh(self, bmh: Dict[str, Any]) -> Dict[str, Any]:
        metadata = bmh["metadata"]
        updated = self.custom.replace_namespaced_custom_object(
            group=METAL3_GROUP,
            version=METAL3_VERSION,
            namespace=metadata.get("namespace", BMH_NAMESPACE),
            plural=BMH_PLURAL,
            name=metadata["name"],
            body=bmh,
        )
        self._refresh_resource_version(bmh, updated)
        return bmh

    @staticmethod
    def _refresh_resource_version(bmh: Dict[str, Any], updated: Any) -> None:
        if isinstance(updated, dict):
            version = updated.get("metadata", {}).get("resourceVersion")
            if version:
                bmh["metadata"]["resourceVersion"] = version

    @_translate_errors
    def get_configmap(self, namespace: str, name: str):
        return self.core.read_namespaced_config_map(name=name, namespace=namespace)

    @_translate_errors
    def unpatch_etcd(self) -> None:
        """Drop the unsupported config overrides applied to etcd during bootstrap."""
        logger.info("Unpatching etcd")
        self.custom.patch_cluster_custom_object(
            group=ETCD_GROUP,
            version=ETCD_VERSION,
            plural=ETCD_PLURAL,
            name=ETCD_NAME,
            body={"spec": {"unsupportedConfigOverrides": None}},
        )
