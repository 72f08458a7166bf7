from __future__ import annotations

import shlex
from dataclasses import dataclass

from .config import LaunchConfig
from .types import PaneSpec

__all__ = [
    "BROKER_TITLE",
    "DAEMON_TITLE",
    "Endpoint",
    "broker_command",
    "daemon_command",
    "pane_specs",
    "parse_endpoint",
    "remote_argv",
    "server_argv",
]

BROKER_TITLE = "shvbroker"
DAEMON_TITLE = "qxeventd"

_SERVER_OPTIONS = (
    "--start-as=maximized",
    "-o",
    "allow_remote_control=yes",
    "-o",
    "enabled_layouts=grid,stack",
)


def broker_command(config: LaunchConfig) -> str:
    """Shell line that starts the broker with the config in QXEVENTD_DIR."""
    q = shlex.quote
    return f"{q(config.shvbroker_bin)} --config {q(config.qxeventd_dir + '/config.yaml')}"


def daemon_command(config: LaunchConfig) -> str:
    """Shell line that starts the event daemon against the local broker."""
    q = shlex.quote
    return (
        f"{q(config.qxeventd_bin)} --url {q(config.qxeventd_url)}"
        f" -d {q(config.qxeventd_dir)} -m {q(config.qxeventd_mount)}"
        f" -v {q(config.qxeventd_verbose)}"
    )


def pane_specs(config: LaunchConfig) -> list[PaneSpec]:
    """Panes in launch order: broker first, daemon second."""
    return [
        PaneSpec(title=BROKER_TITLE, command=broker_command(config)),
        PaneSpec(title=DAEMON_TITLE, command=daemon_command(config)),
    ]


def server_argv(kitty_bin: str, endpoint: str) -> list[str]:
    return [kitty_bin, *_SERVER_OPTIONS, "--listen-on", endpoint]


def remote_argv(kitty_bin: str, endpoint: str, action: str, *args: str) -> list[str]:
    return [kitty_bin, "@", "--to", endpoint, action, *args]


@dataclass(frozen=True)
class Endpoint:
    """A parsed kitty `--listen-on` address.

    kind is "unix" (address is a socket path, with a leading NUL for the
    abstract namespace) or "tcp" (address is the host, with port set).
    """

    kind: str
    address: str
    port: int | None = None


def parse_endpoint(endpoint: str) -> Endpoint:
    """Parse `unix:@name`, `unix:/path` or `tcp:host:port`.

    Raises:
        ValueError: for any other form.
    """
    scheme, sep, rest = endpoint.partition(":")
    if not sep or not rest:
        raise ValueError(f"malformed endpoint: {endpoint!r}")
    if scheme == "unix":
        if rest.startswith("@"):
            return Endpoint(kind="unix", address="\0" + rest[1:])
        return Endpoint(kind="unix", address=rest)
    if scheme == "tcp":
        host, sep, port = rest.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"malformed tcp endpoint: {endpoint!r}")
        return Endpoint(kind="tcp", address=host, port=int(port))
    raise ValueError(f"unsupported endpoint scheme: {scheme!r}")
