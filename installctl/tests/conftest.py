from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from installctl.models import HostData


def make_node(name):
    return SimpleNamespace(metadata=SimpleNamespace(name=name))


def make_pod(name, phase="Running"):
    return SimpleNamespace(metadata=SimpleNamespace(name=name), status=SimpleNamespace(phase=phase))


def make_csr(name, *condition_types):
    conditions = [SimpleNamespace(type=t) for t in condition_types]
    return SimpleNamespace(metadata=SimpleNamespace(name=name), status=SimpleNamespace(conditions=conditions))


def make_host(name, host_id=None, status="installing-in-progress", stage="Rebooting", ips=None):
    return HostData(id=host_id or f"id-{name}", hostname=name, status=status, current_stage=stage, ips=ips or [])


def make_bmh(name, annotation=None, extra_annotations=None):
    annotations = dict(extra_annotations or {})
    if annotation is not None:
        annotations["baremetalhost.metal3.io/status"] = annotation
    return {
        "apiVersion": "metal3.io/v1alpha1",
        "kind": "BareMetalHost",
        "metadata": {"name": name, "namespace": "openshift-machine-api", "annotations": annotations},
        "spec": {"online": True},
    }


@pytest.fixture
def inventory():
    return MagicMock(name="inventory")


@pytest.fixture
def kube():
    return MagicMock(name="kube")


@pytest.fixture
def no_sleep():
    return MagicMock(name="sleep")
