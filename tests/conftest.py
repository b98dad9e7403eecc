"""Pytest hooks and fixtures."""

import shutil

import pytest

from editorbridge.host.context import BridgeContext
from editorbridge.host.local import LocalHost


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "requires_rg: requires the ripgrep binary on PATH",
    )


def pytest_collection_modifyitems(config, items):
    """Skip requires_rg tests when ripgrep is not installed."""
    if shutil.which("rg"):
        return
    skip = pytest.mark.skip(reason="ripgrep (rg) not installed")
    for item in items:
        if "requires_rg" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "ws"
    root.mkdir()
    return root


@pytest.fixture
def local_host(workspace):
    return LocalHost(workspace)


@pytest.fixture
def context(local_host):
    return BridgeContext(host=local_host)
