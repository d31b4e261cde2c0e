import os
import tempfile
from pathlib import Path
from typing import Optional

from kubernetes import config
from kubernetes.config.config_exception import ConfigException


def load_kubeconfig(path: Optional[str] = None) -> str:
    """
    Configure the kubernetes client.

    Precedence: KUBECONFIG_CONTENT env var, an explicit kubeconfig path, the
    in-cluster service account, then the default ~/.kube/config.
    Returns a description of the source that was used.
    """
    # CI/CD secret-based loading
    if os.environ.get("KUBECONFIG_CONTENT"):
        fd, temp_path = tempfile.mkstemp(prefix="installctl-kubeconfig-", suffix=".yaml")
        with os.fdopen(fd, "w") as f:
            f.write(os.environ["KUBECONFIG_CONTENT"])
        try:
            config.load_kube_config(config_file=temp_path)
        finally:
            os.remove(temp_path)
        return "KUBECONFIG_CONTENT"

    # Local path loading
    if path:
        resolved = Path(os.path.expanduser(path)).resolve()
        if not resolved.exists():
            raise FileNotFoundError(f"Kubeconfig not found: {resolved}")
        config.load_kube_config(config_file=str(resolved))
        return str(resolved)

    try:
        config.load_incluster_config()
        return "in-cluster"
    except ConfigException:
        config.load_kube_config()
        return "default kubeconfig"
