"""
BareMetalHost status hand-off.

During bootstrap the real BMH status cannot be written, so it travels in the
``baremetalhost.metal3.io/status`` annotation. Once the cluster is up this
module moves the decoded payload into the status sub-resource and removes the
annotation. The annotation is only dropped after the status commit succeeded,
so a partial failure is retried on the next tick.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from installctl.config import GENERAL_WAIT_TIMEOUT
from installctl.modules.k8s import KubeClientError

logger = logging.getLogger(__name__)

STATUS_ANNOTATION = "baremetalhost.metal3.io/status"
LAST_UPDATED_FIELD = "lastUpdated"


class StatusAnnotationError(ValueError):
    """The status annotation does not hold a JSON object."""
    pass


def unmarshal_status_annotation(content: str) -> Dict[str, Any]:
    try:
        status = json.loads(content)
    except ValueError as e:
        raise StatusAnnotationError(f"Invalid status annotation: {e}") from e
    # "null" decodes to an empty status
    if status is None:
        return {}
    if not isinstance(status, dict):
        raise StatusAnnotationError(
            f"Status annotation must be a JSON object, got {type(status).__name__}"
        )
    return status


def utc_timestamp() -> str:
    """Current time in the RFC 3339 form used by Kubernetes timestamps."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class BMHStatusSynchronizer:
    """Applies status annotations of BareMetalHosts until none is left."""

    def __init__(
        self,
        kube,
        interval: float = GENERAL_WAIT_TIMEOUT,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], str] = utc_timestamp,
    ):
        self.kube = kube
        self.interval = interval
        self.logger = log or logger
        self.sleep = sleep
        self.now = now

    def run(self) -> None:
        """
        Block until every BMH is synchronized or a Provisioning resource exists.

        With a Provisioning resource the baremetal operator owns the BMH status
        and there is nothing for this loop to do.
        """
        while True:
            self.sleep(self.interval)
            if self.sync_once():
                return

    def sync_once(self) -> bool:
        """Run one pass. Returns True when the loop can stop."""
        try:
            exists = self.kube.is_metal_provisioning_exists()
        except KubeClientError as e:
            self.logger.warning(f"Failed to check for the Provisioning CR: {e}")
            return False
        if exists:
            self.logger.info("Provisioning CR exists, no need to update BMHs")
            return True

        try:
            bmhs = self.kube.list_bmhs()
        except KubeClientError as e:
            self.logger.error(f"Failed to list BMH hosts: {e}")
            return False

        if self.update_bmh_statuses(bmhs):
            self.logger.info("Updated all the BMH CRs, finished successfully")
            return True
        return False

    def update_bmh_statuses(self, bmhs: Iterable[Dict[str, Any]]) -> bool:
        """Sync every host. Returns True if none of them carried an annotation."""
        all_updated = True
        for bmh in bmhs:
            if not self.update_bmh_status(bmh):
                all_updated = False
        return all_updated

    def update_bmh_status(self, bmh: Dict[str, Any]) -> bool:
        """
        Move the status annotation of one host into its status.

        Returns True when the host had no annotation to begin with, False
        when an annotation was found, whatever the outcome of the update.
        """
        metadata = bmh.setdefault("metadata", {})
        name = metadata.get("name", "<unnamed>")
        annotations = metadata.get("annotations") or {}
        content = annotations.get(STATUS_ANNOTATION)
        if not content:
            self.logger.debug(f"Skipping setting status of BMH host {name}, status annotation not present")
            return True

        self.logger.info(f"Setting status of BMH host {name} from its status annotation")
        try:
            status = unmarshal_status_annotation(content)
        except StatusAnnotationError as e:
            self.logger.error(f"Failed to unmarshal status annotation of {name}: {e}")
            return False

        # A partial status without a timestamp would look unchanged forever
        if not status.get(LAST_UPDATED_FIELD):
            status[LAST_UPDATED_FIELD] = self.now()
        bmh["status"] = status

        try:
            self.kube.update_bmh_status(bmh)
        except KubeClientError as e:
            self.logger.error(f"Failed to update status of BMH {name}: {e}")
            return False

        del annotations[STATUS_ANNOTATION]
        metadata["annotations"] = annotations
        try:
            self.kube.update_bmh(bmh)
        except KubeClientError as e:
            self.logger.error(f"Failed to remove status annotation from BMH {name}: {e}")
        return False
