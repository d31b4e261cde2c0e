"""Runs the reconcilers side by side and waits for the installation to finish."""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from installctl.config import ControllerConfig
from installctl.logging import setup_logger
from installctl.modules.bmh import BMHStatusSynchronizer
from installctl.modules.csr import CSRApprover
from installctl.modules.finalizer import PostInstallFinalizer
from installctl.modules.nodes import NodeStatusReconciler


@dataclass
class ControllerResult:
    """Outcome of a controller run."""
    nodes_done: bool = False
    finalized: bool = False
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.nodes_done and self.finalized and not self.errors


class Controller:
    """
    Wires the four components and runs them concurrently.

    The node reconciler and the finalizer are joined. The CSR approver is
    stopped through its cancellation event once both are done. The BMH
    synchronizer runs on a daemon thread and never blocks process exit.
    """

    def __init__(
        self,
        config: ControllerConfig,
        inventory,
        kube,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.logger = log or setup_logger(__name__)
        interval = config.poll_interval
        self.nodes = NodeStatusReconciler(inventory, kube, interval, log=self.logger, sleep=sleep)
        self.csrs = CSRApprover(kube, interval, log=self.logger)
        self.bmhs = BMHStatusSynchronizer(kube, interval, log=self.logger, sleep=sleep)
        self.finalizer = PostInstallFinalizer(
            config.cluster_id,
            inventory,
            kube,
            interval,
            console_timeout=config.console_timeout,
            finalizing_timeout=config.finalizing_timeout,
            log=self.logger,
            sleep=sleep,
        )
        self.csr_done = threading.Event()
        self.bmh_thread: Optional[threading.Thread] = None

    def run(self) -> ControllerResult:
        result = ControllerResult()
        self.logger.info(f"Starting installation controller for cluster {self.config.cluster_id}")

        self.bmh_thread = threading.Thread(target=self._run_bmhs, name="bmh-sync", daemon=True)
        self.bmh_thread.start()

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="installctl") as executor:
            csr_future = executor.submit(self.csrs.run, self.csr_done)
            nodes_future = executor.submit(self.nodes.run)
            finalizer_future = executor.submit(self.finalizer.run)

            try:
                result.nodes_done = self._wait(nodes_future, "nodes", result)
                result.finalized = self._wait(finalizer_future, "finalizer", result)
            finally:
                self.csr_done.set()
            self._wait(csr_future, "csr", result)

        self.logger.info("Installation controller finished")
        return result

    def _run_bmhs(self) -> None:
        try:
            self.bmhs.run()
        except Exception as e:
            self.logger.error(f"BMH synchronization failed: {e}", exc_info=True)

    def _wait(self, future, name: str, result: ControllerResult) -> bool:
        try:
            future.result()
        except Exception as e:
            self.logger.error(f"{name} loop failed: {e}", exc_info=True)
            result.errors[name] = str(e)
            return False
        return True
