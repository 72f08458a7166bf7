#!/usr/bin/env python3
"""Launch shvbroker and qxeventd side by side in a kitty instance.

Steps:
- validate the required paths (nothing is spawned if one is missing)
- start kitty listening on the site's control endpoint
- wait until the endpoint accepts connections
- open the broker pane, then the daemon pane, typing each command line
- close kitty's initial window
- supervise kitty until it exits, or detach
"""
from __future__ import annotations

import asyncio
import signal
import sys

from . import kitty
from .cli import parse_args
from .commands import pane_specs
from .config import LaunchConfig, validate_all
from .logging_conf import get_logger, setup_logging
from .server import TerminalServer
from .types import LaunchError

logger = get_logger("launcher")

INITIAL_WINDOW_ID = 1
EXIT_INTERRUPTED = 130


async def run_launch(
    config: LaunchConfig,
    *,
    timeout_s: float = 10.0,
    poll_interval_s: float = 0.1,
    detach: bool = False,
    keep_initial_window: bool = False,
) -> int:
    validate_all(config)
    endpoint = config.endpoint
    logger.info(
        "launch.start",
        extra={"event": "launch_start", "endpoint": endpoint, "site": config.site},
    )
    async with TerminalServer(config.kitty_bin, endpoint) as server:
        await kitty.wait_for_endpoint(
            endpoint, timeout_s, poll_interval_s, alive=server.is_running
        )
        window_ids: list[int | None] = []
        for pane in pane_specs(config):
            window_ids.append(await kitty.open_pane_and_run(config.kitty_bin, endpoint, pane))

        # kitty opens one placeholder window on start; ours got the ids after it.
        if keep_initial_window:
            logger.debug("window.close_disabled", extra={"event": "window_close_disabled"})
        elif INITIAL_WINDOW_ID in window_ids:
            logger.info(
                "window.close_skipped",
                extra={"event": "window_close_skipped", "window_ids": window_ids},
            )
        else:
            await kitty.close_window(config.kitty_bin, endpoint, f"id:{INITIAL_WINDOW_ID}")

        logger.info(
            "launch.done",
            extra={"event": "launch_done", "window_ids": window_ids, "detach": detach},
        )
        if detach:
            server.detach()
            return 0
        await server.wait()
    return 0


async def _run_supervised(config: LaunchConfig, **kwargs) -> int:
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except NotImplementedError:  # pragma: no cover - non-POSIX loops
        pass
    try:
        return await run_launch(config, **kwargs)
    except asyncio.CancelledError:
        logger.info("launch.interrupted", extra={"event": "launch_interrupted"})
        return EXIT_INTERRUPTED
    finally:
        try:
            loop.remove_signal_handler(signal.SIGTERM)
        except NotImplementedError:  # pragma: no cover
            pass


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = parse_args(sys.argv[1:] if argv is None else argv)
    config = LaunchConfig.from_env()
    try:
        code = asyncio.run(
            _run_supervised(
                config,
                timeout_s=args.timeout,
                poll_interval_s=args.poll_interval,
                detach=args.detach,
                keep_initial_window=args.keep_initial_window,
            )
        )
    except LaunchError as e:
        logger.error(
            "launch.failed",
            extra={"event": "launch_failed", "error_type": type(e).__name__, "error": str(e)},
        )
        print(str(e), file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    raise SystemExit(code)


if __name__ == "__main__":
    main()
