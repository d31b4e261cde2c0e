import os
from unittest.mock import patch

import pytest

from installctl.utils.kube import load_kubeconfig

KUBECONFIG = "apiVersion: v1\nkind: Config\nclusters: []\ncontexts: []\nusers: []\n"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("KUBECONFIG_CONTENT", raising=False)


def test_kubeconfig_content_file_is_removed(monkeypatch):
    monkeypatch.setenv("KUBECONFIG_CONTENT", KUBECONFIG)
    seen = {}

    def load_kube_config(config_file):
        seen["path"] = config_file
        with open(config_file) as f:
            seen["content"] = f.read()

    with patch("installctl.utils.kube.config.load_kube_config", side_effect=load_kube_config):
        source = load_kubeconfig()

    assert source == "KUBECONFIG_CONTENT"
    assert seen["content"] == KUBECONFIG
    assert not os.path.exists(seen["path"])


def test_kubeconfig_content_file_is_removed_on_failure(monkeypatch):
    monkeypatch.setenv("KUBECONFIG_CONTENT", "garbage")
    seen = {}

    def load_kube_config(config_file):
        seen["path"] = config_file
        raise ValueError("invalid kubeconfig")

    with patch("installctl.utils.kube.config.load_kube_config", side_effect=load_kube_config):
        with pytest.raises(ValueError):
            load_kubeconfig()

    assert not os.path.exists(seen["path"])


def test_missing_kubeconfig_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_kubeconfig(str(tmp_path / "missing"))


def test_explicit_path(tmp_path):
    path = tmp_path / "config"
    path.write_text(KUBECONFIG)

    with patch("installctl.utils.kube.config.load_kube_config") as load_kube_config:
        source = load_kubeconfig(str(path))

    load_kube_config.assert_called_once_with(config_file=str(path.resolve()))
    assert source == str(path.resolve())
