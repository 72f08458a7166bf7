from __future__ import annotations

import argparse

from .config import get_float_from_env


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments; every flag is optional and defaults from the environment."""
    parser = argparse.ArgumentParser(
        prog="qxevent-launch",
        description="Start shvbroker and qxeventd in kitty panes",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=get_float_from_env("READY_TIMEOUT", 10.0),
        help="seconds to wait for the kitty control endpoint",
    )
    parser.add_argument(
        "--poll",
        type=float,
        default=get_float_from_env("READY_POLL", 0.1),
        dest="poll_interval",
        help="seconds between readiness probes",
    )
    parser.add_argument(
        "--detach",
        action="store_true",
        help="return right after the panes are started and leave kitty running",
    )
    parser.add_argument(
        "--keep-initial-window",
        action="store_true",
        help="do not close kitty's initial window",
    )
    return parser.parse_args(argv)
