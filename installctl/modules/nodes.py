"""Promote inventory hosts to Done once they joined the cluster as nodes."""
import logging
import time
from typing import Callable, Dict, Optional

from installctl.config import GENERAL_WAIT_TIMEOUT
from installctl.models import HostData, HostStage, HostStatus
from installctl.modules.configuring import set_configuring_status_for_hosts
from installctl.modules.inventory import InventoryError
from installctl.modules.k8s import KubeClientError

logger = logging.getLogger(__name__)

MCS_NAMESPACE = "openshift-machine-config-operator"
MCS_LABELS = {"k8s-app": "machine-config-server"}
MCS_LOG_TAIL_LINES = 300

# Hosts in these states need nothing more from this controller
IGNORED_STATUSES = (HostStatus.DISABLED, HostStatus.ERROR, HostStatus.INSTALLED)


class NodeStatusReconciler:
    """Waits for all inventory hosts to join the cluster and marks them Done."""

    def __init__(
        self,
        inventory,
        kube,
        interval: float = GENERAL_WAIT_TIMEOUT,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inventory = inventory
        self.kube = kube
        self.interval = interval
        self.logger = log or logger
        self.sleep = sleep

    def run(self) -> None:
        """Block until the inventory has no pending host left."""
        self.logger.info("Waiting till all nodes will join and update status to assisted installer")
        while True:
            self.sleep(self.interval)
            if self.reconcile_once():
                break
        self.logger.info("All nodes were found. Node status reconciliation done")

    def reconcile_once(self) -> bool:
        """Run one pass. Returns True when no pending host remains."""
        try:
            hosts = self.inventory.get_hosts(IGNORED_STATUSES)
        except InventoryError as e:
            self.logger.error(f"Failed to get node map from inventory: {e}")
            return False
        if not hosts:
            return True

        self.logger.info("Searching for host to change status")
        try:
            nodes = self.kube.list_nodes()
        except KubeClientError as e:
            self.logger.error(f"Failed to list cluster nodes: {e}")
            return False

        self.update_joined_hosts(hosts, nodes)
        self.update_configuring_status_if_needed(hosts)
        return False

    def update_joined_hosts(self, hosts: Dict[str, HostData], nodes) -> int:
        """Mark every host with a matching node as Done. Returns the number updated."""
        updated = 0
        for node in nodes:
            name = node.metadata.name
            host = hosts.get(name)
            if host is None:
                continue
            self.logger.info(
                f"Found new joined node {name} with inventory id {host.id}, "
                f"updating its status to {HostStage.DONE.value}"
            )
            try:
                self.inventory.update_host_install_progress(host.id, HostStage.DONE)
            except InventoryError as e:
                self.logger.error(f"Failed to update node {name} installation status, {e}")
                continue
            updated += 1
        return updated

    def get_mcs_logs(self) -> str:
        """Concatenated machine-config-server logs, empty on any failure."""
        logs = ""
        try:
            pods = self.kube.get_pods(MCS_NAMESPACE, MCS_LABELS)
        except KubeClientError as e:
            self.logger.warning(f"Failed to get mcs pods: {e}")
            return ""
        for pod in pods:
            try:
                logs += self.kube.get_pod_logs(MCS_NAMESPACE, pod.metadata.name, MCS_LOG_TAIL_LINES)
            except KubeClientError as e:
                self.logger.warning(f"Failed to get logs of pod {pod.metadata.name}: {e}")
                return ""
        return logs

    def update_configuring_status_if_needed(self, hosts: Dict[str, HostData]) -> None:
        logs = self.get_mcs_logs()
        set_configuring_status_for_hosts(self.inventory, hosts, logs, True, self.logger)
