from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from installctl import __version__
from installctl.cli import app
from installctl.controller import ControllerResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CLUSTER_ID", "INVENTORY_URL", "PULL_SECRET_TOKEN", "CA_CERT_PATH", "POLL_INTERVAL", "KUBECONFIG"):
        monkeypatch.delenv(name, raising=False)


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_run_rejects_missing_configuration():
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 1
    assert "Missing required configuration" in result.output


def test_run_uses_options_over_environment(monkeypatch):
    monkeypatch.setenv("CLUSTER_ID", "from-env")
    monkeypatch.setenv("INVENTORY_URL", "https://inventory.example.com")
    monkeypatch.setenv("PULL_SECRET_TOKEN", "secret")
    controller = MagicMock()
    controller.return_value.run.return_value = ControllerResult(nodes_done=True, finalized=True)

    with patch("installctl.utils.kube.load_kubeconfig", return_value="in-cluster"), \
            patch("installctl.modules.k8s.KubeClient"), \
            patch("installctl.controller.Controller", controller):
        result = runner.invoke(app, ["run", "--cluster-id", "from-cli", "--poll-interval", "2"])

    assert result.exit_code == 0, result.output
    config = controller.call_args[0][0]
    assert config.cluster_id == "from-cli"
    assert config.poll_interval == 2.0
    assert "installation completed" in result.stdout


def test_run_fails_when_controller_reports_errors(monkeypatch):
    monkeypatch.setenv("CLUSTER_ID", "c1")
    monkeypatch.setenv("INVENTORY_URL", "https://inventory.example.com")
    monkeypatch.setenv("PULL_SECRET_TOKEN", "secret")
    controller = MagicMock()
    controller.return_value.run.return_value = ControllerResult(nodes_done=True, errors={"finalizer": "boom"})

    with patch("installctl.utils.kube.load_kubeconfig", return_value="in-cluster"), \
            patch("installctl.modules.k8s.KubeClient"), \
            patch("installctl.controller.Controller", controller):
        result = runner.invoke(app, ["run"])

    assert result.exit_code == 1


def test_run_reports_kubeconfig_errors(monkeypatch):
    monkeypatch.setenv("CLUSTER_ID", "c1")
    monkeypatch.setenv("INVENTORY_URL", "https://inventory.example.com")
    monkeypatch.setenv("PULL_SECRET_TOKEN", "secret")
    controller = MagicMock()

    with patch("installctl.utils.kube.load_kubeconfig", side_effect=FileNotFoundError("Kubeconfig not found: /nope")), \
            patch("installctl.controller.Controller", controller):
        result = runner.invoke(app, ["run", "--kubeconfig", "/nope"])

    assert result.exit_code == 1
    assert "Configuration error: Kubeconfig not found" in result.output
    controller.assert_not_called()
