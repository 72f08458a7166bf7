from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PaneSpec:
    """A titled pane and the command line typed into its shell."""

    title: str
    command: str


class LaunchError(RuntimeError):
    """Raised when the launch sequence cannot proceed."""


class MissingPathError(LaunchError):
    """Raised when a required variable does not point at an existing path."""

    def __init__(self, var_name: str, path: str | None) -> None:
        self.var_name = var_name
        self.path = path
        super().__init__(f"Path specified in '{var_name}' doesn't exist: {path!r}")


class TerminalServerError(LaunchError):
    """Raised when the terminal server cannot be spawned or exits early."""


class TerminalNotReadyError(LaunchError):
    """Raised when the control endpoint never accepts a connection in time."""


class RemoteControlError(LaunchError):
    """Raised when a remote-control call exits non-zero."""

    def __init__(self, action: str, returncode: int, stderr: str = "") -> None:
        self.action = action
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"kitty @ {action} failed with exit code {returncode}{detail}")
