"""Approve pending certificate signing requests of joining nodes."""
import logging
import threading
from typing import Iterable, Optional

from installctl.config import GENERAL_WAIT_TIMEOUT
from installctl.modules.k8s import KubeClientError

logger = logging.getLogger(__name__)

APPROVED_CONDITION = "Approved"


def is_csr_approved(csr) -> bool:
    status = getattr(csr, "status", None)
    for condition in (status and status.conditions) or []:
        if condition.type == APPROVED_CONDITION:
            return True
    return False


class CSRApprover:
    """
    Approves every CSR that does not carry an Approved condition yet.

    Approval is best effort: a failed approve call is logged and the CSR is
    picked up again on the next tick. The loop only stops when ``done`` is
    set, and the flag is checked between ticks.
    """

    def __init__(self, kube, interval: float = GENERAL_WAIT_TIMEOUT, log: Optional[logging.Logger] = None):
        self.kube = kube
        self.interval = interval
        self.logger = log or logger

    def run(self, done: threading.Event) -> None:
        self.logger.info("Start approving csrs")
        while not done.wait(self.interval):
            try:
                csrs = self.kube.list_csrs()
            except KubeClientError as e:
                self.logger.warning(f"Failed to list csrs: {e}")
                continue
            self.approve_csrs(csrs)
        self.logger.info("Stopped approving csrs")

    def approve_csrs(self, csrs: Iterable) -> int:
        """Approve the unapproved CSRs. Returns the number of approve calls issued."""
        attempted = 0
        for csr in csrs:
            if is_csr_approved(csr):
                continue
            self.logger.info(f"Approving csr {csr.metadata.name}")
            attempted += 1
            try:
                self.kube.approve_csr(csr)
            except KubeClientError as e:
                # Retried on the next tick
                self.logger.warning(f"Failed to approve csr {csr.metadata.name}: {e}")
        return attempted
