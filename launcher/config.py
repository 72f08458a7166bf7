from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from .types import MissingPathError

__all__ = [
    "ENDPOINT_PREFIX",
    "REQUIRED_PATH_VARS",
    "LaunchConfig",
    "endpoint_for_site",
    "get_float_from_env",
    "validate",
    "validate_all",
]

ENDPOINT_PREFIX = "unix:@qxeventd-remote-kitty-control-"

# Checked in this order; the first failure aborts the launch.
REQUIRED_PATH_VARS = ("SHVBROKER_BIN", "QXEVENTD_BIN", "SHVBROKER_CONFIG")

DEFAULT_QXEVENTD_URL = "tcp://localhost?user=test&password=test"
DEFAULT_QXEVENTD_MOUNT = "test/qxevent"
DEFAULT_QXEVENTD_VERBOSE = "RpcMsg"


def _home(environ: Mapping[str, str]) -> str:
    return environ.get("HOME") or str(Path.home())


def endpoint_for_site(site: str) -> str:
    """Return the kitty control endpoint for a site identifier."""
    return f"{ENDPOINT_PREFIX}{site}"


def get_float_from_env(name: str, default: float, environ: Mapping[str, str] | None = None) -> float:
    """Return a positive float from the environment, or `default` if unset."""
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        val = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a float") from e
    if val <= 0:
        raise ValueError(f"{name} must be positive")
    return val


class LaunchConfig(BaseModel):
    """Everything the launcher reads from the environment.

    Path fields keep the raw string (possibly empty) so validation can report
    exactly what the variable held.
    """

    shvbroker_bin: str = Field(..., description="SHVBROKER_BIN")
    qxeventd_bin: str = Field(..., description="QXEVENTD_BIN")
    qxeventd_dir: str = Field(..., description="QXEVENTD_DIR")
    shvbroker_config: str = Field("", description="SHVBROKER_CONFIG")
    site: str = Field("", description="SITE")
    kitty_bin: str = Field("kitty", description="KITTY_BIN")
    qxeventd_url: str = Field(DEFAULT_QXEVENTD_URL, description="QXEVENTD_URL")
    qxeventd_mount: str = Field(DEFAULT_QXEVENTD_MOUNT, description="QXEVENTD_MOUNT")
    qxeventd_verbose: str = Field(DEFAULT_QXEVENTD_VERBOSE, description="QXEVENTD_VERBOSE")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LaunchConfig:
        env = os.environ if environ is None else environ
        home = _home(env)
        return cls(
            shvbroker_bin=env.get("SHVBROKER_BIN", f"{home}/p/shvbroker-rs/target/debug/shvbroker"),
            qxeventd_bin=env.get("QXEVENTD_BIN", f"{home}/p/qxeventd/target/debug/qxeventd"),
            qxeventd_dir=env.get("QXEVENTD_DIR", f"{home}/t/qxeventd"),
            shvbroker_config=env.get("SHVBROKER_CONFIG", ""),
            site=env.get("SITE", ""),
            kitty_bin=env.get("KITTY_BIN") or "kitty",
            qxeventd_url=env.get("QXEVENTD_URL") or DEFAULT_QXEVENTD_URL,
            qxeventd_mount=env.get("QXEVENTD_MOUNT") or DEFAULT_QXEVENTD_MOUNT,
            qxeventd_verbose=env.get("QXEVENTD_VERBOSE") or DEFAULT_QXEVENTD_VERBOSE,
        )

    @property
    def endpoint(self) -> str:
        return endpoint_for_site(self.site)

    def path_for(self, var_name: str) -> str:
        """Return the value held for one of REQUIRED_PATH_VARS."""
        field = var_name.lower()
        if var_name not in REQUIRED_PATH_VARS or field not in type(self).model_fields:
            raise KeyError(var_name)
        return getattr(self, field)


def validate(config: LaunchConfig, var_name: str) -> None:
    """Raise MissingPathError unless `var_name` points at an existing path."""
    path = config.path_for(var_name)
    if not path or not Path(path).exists():
        raise MissingPathError(var_name, path)


def validate_all(config: LaunchConfig) -> None:
    for var_name in REQUIRED_PATH_VARS:
        validate(config, var_name)
