"""
Installation controller modules.
"""
from .inventory import InventoryClient, InventoryError, get_inventory_client
from .k8s import KubeClient, KubeClientError
from .nodes import NodeStatusReconciler
from .csr import CSRApprover
from .bmh import BMHStatusSynchronizer, StatusAnnotationError
from .finalizer import PostInstallFinalizer

__all__ = [
    'InventoryClient',
    'InventoryError',
    'get_inventory_client',
    'KubeClient',
    'KubeClientError',
    'NodeStatusReconciler',
    'CSRApprover',
    'BMHStatusSynchronizer',
    'StatusAnnotationError',
    'PostInstallFinalizer',
]
