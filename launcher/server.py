"""Ownership of the kitty terminal-server process.

The server is started inside an async context; leaving the context (normally,
on error or on cancellation) terminates it together with every descendant,
which covers the pane shells and the binaries they run. `detach()` hands the
process over to the OS instead.
"""
from __future__ import annotations

import asyncio
import time

import psutil

from .commands import server_argv
from .logging_conf import get_logger
from .types import TerminalServerError

logger = get_logger("launcher.server")


def descendants(pid: int) -> list[psutil.Process]:
    """Return every live descendant of `pid` (empty if `pid` is gone)."""
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return []


def terminate_procs(procs: list[psutil.Process], timeout_s: float = 3.0) -> list[psutil.Process]:
    """SIGTERM `procs`, SIGKILL whatever survives `timeout_s`.

    Returns the processes that had to be killed.
    """
    for p in procs:
        try:
            p.terminate()
        except psutil.NoSuchProcess:
            continue
    _, alive = psutil.wait_procs(procs, timeout=timeout_s)
    for p in alive:
        try:
            p.kill()
        except psutil.NoSuchProcess:
            continue
    if alive:
        psutil.wait_procs(alive, timeout=1.0)
    return alive


class TerminalServer:
    """Async context manager around a kitty instance listening on `endpoint`."""

    def __init__(self, kitty_bin: str, endpoint: str, *, grace_s: float = 3.0) -> None:
        self.kitty_bin = kitty_bin
        self.endpoint = endpoint
        self.grace_s = grace_s
        self.process: asyncio.subprocess.Process | None = None
        self._detached = False

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process else None

    def is_running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def start(self) -> asyncio.subprocess.Process:
        """Spawn the terminal server; one process per TerminalServer."""
        if self.process is not None:
            raise TerminalServerError("terminal server already started")
        argv = server_argv(self.kitty_bin, self.endpoint)
        try:
            self.process = await asyncio.create_subprocess_exec(
                *argv, stdin=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            raise TerminalServerError(f"cannot start {self.kitty_bin}: {e}") from e
        logger.info(
            "server.start",
            extra={"event": "server_start", "pid": self.process.pid, "endpoint": self.endpoint},
        )
        return self.process

    async def wait(self) -> int:
        """Block until the server exits and return its exit code."""
        if self.process is None:
            raise TerminalServerError("terminal server not started")
        code = await self.process.wait()
        logger.info("server.exit", extra={"event": "server_exit", "returncode": code})
        return code

    def detach(self) -> None:
        self._detached = True
        logger.info(
            "server.detach",
            extra={"event": "server_detach", "pid": self.pid, "endpoint": self.endpoint},
        )

    async def stop(self) -> None:
        """Terminate the server and its process tree."""
        if not self.is_running():
            return
        started = time.monotonic()
        # Collected before the root goes away; orphans get reparented.
        children = descendants(self.process.pid)
        try:
            self.process.terminate()
        except ProcessLookupError:
            pass
        killed = await asyncio.to_thread(terminate_procs, children, self.grace_s)
        try:
            await asyncio.wait_for(self.process.wait(), timeout=self.grace_s)
        except asyncio.TimeoutError:
            logger.warning("server.kill", extra={"event": "server_kill", "pid": self.pid})
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
            await self.process.wait()
        logger.info(
            "server.stop",
            extra={
                "event": "server_stop",
                "pid": self.pid,
                "children": len(children),
                "killed": len(killed),
                "elapsed_ms": round((time.monotonic() - started) * 1000.0, 2),
            },
        )

    async def __aenter__(self) -> TerminalServer:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._detached and exc_type is None:
            return
        await asyncio.shield(self.stop())
