"""Move hosts to the Configuring stage once they pulled their ignition."""
import logging
import re
from typing import Dict, Optional

from installctl.models import HostData, HostStage
from installctl.modules.inventory import InventoryError

logger = logging.getLogger(__name__)

# Stages a host has already gone past when it shows up in the MCS logs
ALREADY_CONFIGURING_STAGES = (HostStage.CONFIGURING, HostStage.JOINED, HostStage.DONE)


def set_configuring_status_for_hosts(
    inventory,
    hosts: Dict[str, HostData],
    mcs_logs: str,
    from_bootstrap: bool,
    log: Optional[logging.Logger] = None,
) -> None:
    """Update hosts seen in the machine-config-server logs to Configuring.

    A host pulled its ignition when one of its IPs is followed by
    "Ignition" within 20 characters in the logs. Hosts waiting for ignition
    are only considered when called after the bootstrap pivot.
    Updated hosts have their ``current_stage`` changed in ``hosts`` too.
    """
    log = log or logger
    skipped = list(ALREADY_CONFIGURING_STAGES)
    if not from_bootstrap:
        skipped.append(HostStage.WAITING_FOR_IGNITION)

    for name, host in hosts.items():
        if host.current_stage in skipped or not host.ips:
            continue
        log.debug(f"Verifying if host {name} pulled ignition")
        pattern = re.compile(
            "({}).{{1,20}}(Ignition)".format("|".join(re.escape(ip) for ip in host.ips))
        )
        if not pattern.search(mcs_logs):
            continue
        log.info(f"Host {name} found in mcs logs, moving it to {HostStage.CONFIGURING.value} state")
        try:
            inventory.update_host_install_progress(host.id, HostStage.CONFIGURING)
        except InventoryError as e:
            log.error(f"Failed to update node {name} installation status, {e}")
            continue
        host.current_stage = HostStage.CONFIGURING
