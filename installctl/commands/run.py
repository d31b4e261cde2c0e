"""
Run the installation controller.
"""
import logging
from typing import Optional

import typer

from installctl.config import ControllerConfig
from installctl.utils import redact_sensitive_data

logger = logging.getLogger(__name__)


def load_config(**overrides) -> ControllerConfig:
    """Environment first, then any option given on the command line."""
    config = ControllerConfig.from_env().override(**overrides)
    config.validate()
    return config


def run(
    cluster_id: Optional[str] = typer.Option(None, "--cluster-id", help="Cluster ID in the inventory (CLUSTER_ID)"),
    inventory_url: Optional[str] = typer.Option(None, "--inventory-url", help="Inventory service URL (INVENTORY_URL)"),
    poll_interval: Optional[float] = typer.Option(None, "--poll-interval", help="Seconds between polls (POLL_INTERVAL)"),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Kubeconfig path, in-cluster config when unset"),
    skip_cert_verification: Optional[bool] = typer.Option(
        None, "--skip-cert-verification/--verify-cert", help="Skip TLS verification of the inventory"
    ),
    ca_cert_path: Optional[str] = typer.Option(None, "--ca-cert-path", help="CA bundle for the inventory (CA_CERT_PATH)"),
):
    """Drive the cluster to a completed installation."""
    try:
        config = load_config(
            cluster_id=cluster_id,
            inventory_url=inventory_url,
            poll_interval=poll_interval,
            kubeconfig=kubeconfig,
            skip_cert_verification=skip_cert_verification,
            ca_cert_path=ca_cert_path,
        )
    except ValueError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    root = logging.getLogger()
    if root.level != logging.DEBUG:
        root.setLevel(config.log_level)
    logger.info(f"Controller configuration: {redact_sensitive_data(config.as_dict())}")

    from installctl.controller import Controller
    from installctl.modules.inventory import get_inventory_client
    from installctl.modules.k8s import KubeClient
    from installctl.utils.kube import load_kubeconfig
    from kubernetes.config.config_exception import ConfigException

    try:
        source = load_kubeconfig(config.kubeconfig or None)
    except (FileNotFoundError, ConfigException) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)
    logger.info(f"Using kubernetes configuration from {source}")

    controller = Controller(config, get_inventory_client(config), KubeClient())
    result = controller.run()
    if not result.success:
        typer.echo(f"Installation controller finished with errors: {result.errors}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Cluster {config.cluster_id} installation completed")
