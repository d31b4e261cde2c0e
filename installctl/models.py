"""Data models shared by the inventory client and the reconcilers."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class HostStatus(str, Enum):
    """Host states reported by the inventory service."""
    DISCOVERING = 'discovering'
    KNOWN = 'known'
    DISCONNECTED = 'disconnected'
    INSUFFICIENT = 'insufficient'
    DISABLED = 'disabled'
    PREPARING_FOR_INSTALLATION = 'preparing-for-installation'
    PENDING_FOR_INPUT = 'pending-for-input'
    INSTALLING = 'installing'
    INSTALLING_IN_PROGRESS = 'installing-in-progress'
    INSTALLING_PENDING_USER_ACTION = 'installing-pending-user-action'
    RESETTING = 'resetting'
    RESETTING_PENDING_USER_ACTION = 'resetting-pending-user-action'
    INSTALLED = 'installed'
    ERROR = 'error'


class HostStage(str, Enum):
    """Installation progress stages of a single host."""
    STARTING_INSTALLATION = 'Starting installation'
    WAITING_FOR_CONTROL_PLANE = 'Waiting for control plane'
    INSTALLING = 'Installing'
    WRITING_IMAGE_TO_DISK = 'Writing image to disk'
    REBOOTING = 'Rebooting'
    WAITING_FOR_IGNITION = 'Waiting for ignition'
    CONFIGURING = 'Configuring'
    JOINED = 'Joined'
    DONE = 'Done'
    FAILED = 'Failed'


class ClusterStatus(str, Enum):
    """Cluster installation states reported by the inventory service."""
    INSUFFICIENT = 'insufficient'
    READY = 'ready'
    PREPARING_FOR_INSTALLATION = 'preparing-for-installation'
    PENDING_FOR_INPUT = 'pending-for-input'
    INSTALLING = 'installing'
    INSTALLING_PENDING_USER_ACTION = 'installing-pending-user-action'
    FINALIZING = 'finalizing'
    INSTALLED = 'installed'
    ADDING_HOSTS = 'adding-hosts'
    CANCELLED = 'cancelled'
    ERROR = 'error'


def _parse_inventory(raw: Any) -> Dict[str, Any]:
    """The inventory document is embedded in the host as a JSON string."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass
class HostData:
    """A host as tracked by the inventory service."""
    id: str
    hostname: str
    status: str = ''
    current_stage: str = ''
    ips: List[str] = field(default_factory=list)
    host: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, host: Dict[str, Any]) -> 'HostData':
        """Build a HostData from a host document returned by the REST API.

        The name used to correlate with cluster nodes is the requested
        hostname, falling back to the hostname found in the host inventory.
        Addresses are stored without their prefix length.
        """
        inventory = _parse_inventory(host.get('inventory'))
        hostname = host.get('requested_hostname') or inventory.get('hostname', '')

        ips: List[str] = []
        for interface in inventory.get('interfaces') or []:
            addresses = (interface.get('ipv4_addresses') or []) + (interface.get('ipv6_addresses') or [])
            for address in addresses:
                ips.append(address.split('/')[0])

        progress = host.get('progress') or {}
        return cls(
            id=str(host['id']),
            hostname=hostname.lower(),
            status=host.get('status', ''),
            current_stage=progress.get('current_stage', ''),
            ips=ips,
            host=host,
        )
