"""Post-install steps run once the inventory reports the cluster as finalizing."""
import logging
import time
from typing import Callable, Optional

from installctl.config import GENERAL_WAIT_TIMEOUT
from installctl.models import ClusterStatus
from installctl.modules.inventory import InventoryError
from installctl.modules.k8s import KubeClientError
from installctl.utils import PollTimeoutError, poll_until, retry_forever

logger = logging.getLogger(__name__)

INGRESS_CM_NAMESPACE = "openshift-config-managed"
INGRESS_CM_NAME = "default-ingress-cert"
INGRESS_CA_KEY = "ca-bundle.crt"

CONSOLE_NAMESPACE = "openshift-console"
CONSOLE_LABELS = {"app": "console", "component": "ui"}

CLIENT_ERRORS = (InventoryError, KubeClientError)


class PostInstallFinalizer:
    """
    Ordered one-shot post-install sequence.

    1. wait for the cluster to be finalizing
    2. upload the ingress CA to the inventory
    3. remove the bootstrap etcd patch
    4. wait for a running console pod
    5. report installation completion

    Every step is retried at a fixed interval until it succeeds. The two waits
    are unbounded unless a timeout is given.
    """

    def __init__(
        self,
        cluster_id: str,
        inventory,
        kube,
        interval: float = GENERAL_WAIT_TIMEOUT,
        console_timeout: Optional[float] = None,
        finalizing_timeout: Optional[float] = None,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cluster_id = cluster_id
        self.inventory = inventory
        self.kube = kube
        self.interval = interval
        self.console_timeout = console_timeout
        self.finalizing_timeout = finalizing_timeout
        self.logger = log or logger
        self.sleep = sleep
        self.clock = clock

    def run(self) -> None:
        self.wait_for_finalizing()
        self.add_router_ca_to_cluster_ca()
        self.unpatch_etcd()
        try:
            self.wait_for_console()
        except PollTimeoutError as e:
            self.logger.error(str(e))
            self.send_complete_installation(False, str(e))
            return
        self.send_complete_installation(True, "")

    def _is_finalizing(self) -> bool:
        status = self.inventory.get_cluster_status()
        self.logger.debug(f"Cluster {self.cluster_id} status is {status}")
        return status == ClusterStatus.FINALIZING

    def wait_for_finalizing(self) -> None:
        """Wait until the cluster is finalizing; every other status is ignored."""
        self.logger.info(f"Waiting for cluster {self.cluster_id} to reach {ClusterStatus.FINALIZING.value}")
        poll_until(
            self._is_finalizing,
            self.interval,
            timeout=self.finalizing_timeout,
            sleep=self.sleep,
            clock=self.clock,
            description=f"cluster {self.cluster_id} to be {ClusterStatus.FINALIZING.value}",
            log=self.logger,
            exceptions=CLIENT_ERRORS,
        )

    def _upload_ingress_ca(self) -> None:
        config_map = self.kube.get_configmap(INGRESS_CM_NAMESPACE, INGRESS_CM_NAME)
        ingress_ca = (config_map.data or {}).get(INGRESS_CA_KEY, "")
        self.logger.info("Sending ingress certificate to inventory service")
        self.logger.debug(f"Certificate data {ingress_ca}")
        self.inventory.upload_ingress_ca(ingress_ca, self.cluster_id)

    def add_router_ca_to_cluster_ca(self) -> None:
        self.logger.info("Start adding ingress ca to cluster")
        retry_forever(
            self._upload_ingress_ca,
            self.interval,
            sleep=self.sleep,
            description=f"upload {INGRESS_CM_NAMESPACE}/{INGRESS_CM_NAME} to the inventory",
            log=self.logger,
            exceptions=CLIENT_ERRORS,
        )
        self.logger.info("Ingress ca successfully sent to inventory")

    def unpatch_etcd(self) -> None:
        retry_forever(
            self.kube.unpatch_etcd,
            self.interval,
            sleep=self.sleep,
            description="unpatch etcd",
            log=self.logger,
            exceptions=CLIENT_ERRORS,
        )

    def _console_running(self) -> bool:
        pods = self.kube.get_pods(CONSOLE_NAMESPACE, CONSOLE_LABELS)
        return any(pod.status and pod.status.phase == "Running" for pod in pods)

    def wait_for_console(self) -> None:
        self.logger.info("Waiting for console pod")
        poll_until(
            self._console_running,
            self.interval,
            timeout=self.console_timeout,
            sleep=self.sleep,
            clock=self.clock,
            description="a running console pod",
            log=self.logger,
            exceptions=CLIENT_ERRORS,
        )
        self.logger.info("Found running console pod")

    def send_complete_installation(self, is_success: bool, error_info: str) -> None:
        self.logger.info("Start complete installation step")
        retry_forever(
            lambda: self.inventory.complete_installation(self.cluster_id, is_success, error_info),
            self.interval,
            sleep=self.sleep,
            description="report installation completion",
            log=self.logger,
            exceptions=CLIENT_ERRORS,
        )
        self.logger.info("Done complete installation step")
