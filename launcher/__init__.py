"""Launcher for shvbroker and qxeventd in kitty panes."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("qxevent-launcher")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
