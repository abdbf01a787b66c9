"""Modification-time polling watcher for the whitelist file.

The watcher runs as an asyncio.Task. On each tick it stats the file off the
event loop and awaits on_change(path) when the mtime is strictly newer than
the last one observed. stop() cancels the task; no further ticks run.
"""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable, Optional

from rpcgate.constants import DEFAULT_WHITELIST_INTERVAL_MS
from rpcgate.errors import TransientIOError
from rpcgate.utils.logger import get_logger

logger = get_logger(__name__)

OnChange = Callable[[str], Awaitable[object]]


class WhitelistWatcher:
    """Polls path every interval_ms and calls on_change when it was modified.

    Usage:
        watcher = WhitelistWatcher(path, 60_000, on_change=reload_whitelist)
        await watcher.start()
        ...
        await watcher.stop()

    Failure model:
        - stat() failure on a tick → TransientIOError, logged at DEBUG, treated
          as "no change"; the next tick retries.
        - on_change() failure → logged at ERROR; the watcher keeps polling.
    """

    def __init__(
        self,
        path: str,
        interval_ms: int = DEFAULT_WHITELIST_INTERVAL_MS,
        on_change: Optional[OnChange] = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.path = path
        self.interval_ms = interval_ms
        self.last_mtime: Optional[float] = None
        self._on_change = on_change
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self, baseline_mtime: Optional[float] = None) -> None:
        """Spawn the polling task.

        baseline_mtime is the mtime the caller observed before its own
        initial load; a write landing after that is picked up on the first
        tick. Without it the current mtime is recorded.
        """
        if self.running:
            return
        if baseline_mtime is not None:
            self.last_mtime = baseline_mtime
        else:
            try:
                self.last_mtime = await self._stat_mtime()
            except TransientIOError as exc:
                logger.debug("Initial whitelist stat failed", path=self.path, error=str(exc))
                self.last_mtime = None
        self._task = asyncio.create_task(self._run(), name=f"whitelist-watcher:{self.path}")
        logger.info("Whitelist watcher started", path=self.path, interval_ms=self.interval_ms)

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish. Idempotent."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Whitelist watcher stopped", path=self.path)

    # ── Polling ───────────────────────────────────────────────────────────────

    async def poll_once(self) -> bool:
        """Run a single tick. Returns True if on_change was invoked."""
        try:
            mtime = await self._stat_mtime()
        except TransientIOError as exc:
            logger.debug("Whitelist stat failed — treating as unchanged", path=self.path, error=str(exc))
            return False

        previous, self.last_mtime = self.last_mtime, mtime
        if previous is not None and mtime <= previous:
            return False

        logger.info("Whitelist file changed", path=self.path, mtime=mtime, previous_mtime=previous)
        if self._on_change is None:
            return True
        try:
            await self._on_change(self.path)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Whitelist reload failed — keeping prior whitelist",
                path=self.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        return True

    async def _run(self) -> None:
        interval_s = self.interval_ms / 1000.0
        try:
            while True:
                await asyncio.sleep(interval_s)
                await self.poll_once()
        except asyncio.CancelledError:
            logger.debug("Whitelist watcher cancelled", path=self.path)
            raise

    async def _stat_mtime(self) -> float:
        try:
            st = await asyncio.to_thread(os.stat, self.path)
        except OSError as exc:
            raise TransientIOError(self.path, exc) from exc
        return st.st_mtime
