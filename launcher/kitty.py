from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from .commands import parse_endpoint, remote_argv
from .logging_conf import get_logger
from .types import PaneSpec, RemoteControlError, TerminalNotReadyError, TerminalServerError

logger = get_logger("launcher.kitty")


async def _probe(endpoint: str, timeout_s: float) -> bool:
    ep = parse_endpoint(endpoint)
    try:
        if ep.kind == "unix":
            conn = asyncio.open_unix_connection(path=ep.address)
        else:
            conn = asyncio.open_connection(ep.address, ep.port)
        _, writer = await asyncio.wait_for(conn, timeout=timeout_s)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def wait_for_endpoint(
    endpoint: str,
    timeout_s: float = 10.0,
    poll_s: float = 0.1,
    *,
    alive: Callable[[], bool] | None = None,
) -> None:
    """Poll the control endpoint until it accepts a connection.

    - Gives up with TerminalNotReadyError after `timeout_s` seconds
    - Fails fast with TerminalServerError once `alive()` reports the server gone
    """
    started = time.monotonic()
    deadline = started + timeout_s
    attempts = 0
    while True:
        if alive is not None and not alive():
            raise TerminalServerError(f"terminal server exited before {endpoint} became ready")
        attempts += 1
        remaining = deadline - time.monotonic()
        if await _probe(endpoint, max(0.05, min(1.0, remaining))):
            logger.info(
                "server.ready",
                extra={
                    "event": "server_ready",
                    "endpoint": endpoint,
                    "attempts": attempts,
                    "elapsed_ms": round((time.monotonic() - started) * 1000.0, 2),
                },
            )
            return
        if time.monotonic() >= deadline:
            break
        await asyncio.sleep(min(poll_s, max(0.0, deadline - time.monotonic())))
    raise TerminalNotReadyError(f"{endpoint} did not accept a connection within {timeout_s}s")


async def remote(
    kitty_bin: str, endpoint: str, action: str, *args: str, stdin: str | None = None
) -> str:
    """Run one `kitty @` sub-command and return its stdout."""
    argv = remote_argv(kitty_bin, endpoint, action, *args)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise RemoteControlError(action, -1, str(e)) from e
    out, err = await proc.communicate(stdin.encode() if stdin is not None else None)
    if proc.returncode != 0:
        raise RemoteControlError(action, proc.returncode, err.decode(errors="replace"))
    logger.debug("remote.ok", extra={"event": "remote_ok", "action": action, "endpoint": endpoint})
    return out.decode(errors="replace")


async def _retrying(action: str, title: str, retries: int, call):
    last_err: RemoteControlError | None = None
    for attempt in range(retries):
        try:
            return await call()
        except RemoteControlError as e:
            last_err = e
            logger.warning(
                "pane.retry",
                extra={
                    "event": "pane_retry",
                    "action": action,
                    "title": title,
                    "attempt": attempt + 1,
                    "error": str(e),
                },
            )
    raise last_err if last_err else RemoteControlError(action, -1, "no attempts made")


async def open_pane_and_run(
    kitty_bin: str, endpoint: str, pane: PaneSpec, *, retries: int = 2
) -> int | None:
    """Open a titled pane and type `pane.command` followed by a newline into it.

    Returns the window id kitty reports for the new pane, if any.
    """
    out = await _retrying(
        "launch",
        pane.title,
        retries,
        lambda: remote(kitty_bin, endpoint, "launch", "--title", pane.title, "--keep-focus", "bash"),
    )
    window_id = int(out.strip()) if out.strip().isdigit() else None
    await _retrying(
        "send-text",
        pane.title,
        retries,
        lambda: remote(
            kitty_bin,
            endpoint,
            "send-text",
            "--match",
            f"title:{pane.title}",
            "--stdin",
            stdin=pane.command + "\n",
        ),
    )
    logger.info(
        "pane.opened",
        extra={
            "event": "pane_opened",
            "title": pane.title,
            "window_id": window_id,
            "endpoint": endpoint,
        },
    )
    return window_id


async def close_window(kitty_bin: str, endpoint: str, match: str) -> bool:
    """Best-effort close-window; returns False and logs when kitty refuses."""
    try:
        await remote(kitty_bin, endpoint, "close-window", "--match", match)
    except RemoteControlError as e:
        logger.warning(
            "window.close_failed",
            extra={"event": "window_close_failed", "match": match, "error": str(e)},
        )
        return False
    logger.info("window.closed", extra={"event": "window_closed", "match": match})
    return True
