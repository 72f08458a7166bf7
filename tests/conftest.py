"""Pytest configuration for the launcher tests."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from launcher.config import LaunchConfig

ENV_VARS = (
    "SHVBROKER_BIN",
    "QXEVENTD_BIN",
    "QXEVENTD_DIR",
    "SHVBROKER_CONFIG",
    "SITE",
    "KITTY_BIN",
    "QXEVENTD_URL",
    "QXEVENTD_MOUNT",
    "QXEVENTD_VERBOSE",
    "READY_TIMEOUT",
    "READY_POLL",
)


def pytest_configure():
    # Keep root handlers attached so setup_logging() stays a no-op under test.
    logging.getLogger().addHandler(logging.NullHandler())


@pytest.fixture
def launch_paths(tmp_path: Path) -> dict[str, str]:
    """Existing broker/daemon binaries, config file and data directory."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    broker = bin_dir / "shvbroker"
    daemon = bin_dir / "qxeventd"
    for p in (broker, daemon):
        p.write_text("#!/bin/sh\n")
        p.chmod(0o755)
    data_dir = tmp_path / "qxeventd"
    data_dir.mkdir()
    config = data_dir / "config.yaml"
    config.write_text("listen: tcp://localhost:3755\n")
    return {
        "SHVBROKER_BIN": str(broker),
        "QXEVENTD_BIN": str(daemon),
        "QXEVENTD_DIR": str(data_dir),
        "SHVBROKER_CONFIG": str(config),
        "SITE": "lab",
    }


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def launch_config(launch_paths) -> LaunchConfig:
    return LaunchConfig.from_env(launch_paths)
