"""
Inactivity watchdog for client sessions.

A :class:`TimeoutWatchdog` runs as its own task beside the session's read
loop.  The session signals :meth:`~TimeoutWatchdog.activity` for each
message received, and :meth:`~TimeoutWatchdog.close` when it ends for any
other reason.  When no activity arrives within ``timeout`` seconds, the
``on_expire`` callback is called, exactly once.
"""

from __future__ import annotations

# std imports
import asyncio
import logging
import time
from typing import Callable, Optional

__all__ = ("TimeoutWatchdog",)

logger = logging.getLogger("echoserver.watchdog")


class TimeoutWatchdog:
    """Resettable inactivity timer running as an independent task."""

    def __init__(self, timeout: Optional[float], on_expire: Callable[[], None]) -> None:
        """
        Class initializer.

        :param timeout: seconds of inactivity allowed.  When ``0`` or
            ``None``, the watchdog never expires.
        :param on_expire: callback, called without arguments on expiry.
        """
        self.timeout = timeout or None
        self._on_expire = on_expire
        # collapses any number of activity signals into one pending reset.
        self._activity = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self._expired = False
        self._last_activity = time.monotonic()

    def __repr__(self) -> str:
        state = "expired" if self._expired else "closed" if self._closed else "running"
        return "<TimeoutWatchdog timeout={0} {1}>".format(self.timeout, state)

    @property
    def expired(self) -> bool:
        """Whether the timeout elapsed and ``on_expire`` was called."""
        return self._expired

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` was called."""
        return self._closed

    @property
    def idle(self) -> float:
        """Time elapsed since start or last activity, in seconds as float."""
        return time.monotonic() - self._last_activity

    def start(self) -> asyncio.Task:
        """Schedule the watchdog task, the deadline begins now."""
        if self._task is None:
            self._last_activity = time.monotonic()
            self._task = asyncio.get_event_loop().create_task(self._run())
        return self._task

    def activity(self) -> None:
        """Reset the deadline.  Never blocks; no effect once expired or closed."""
        if self._expired or self._closed:
            return
        self._last_activity = time.monotonic()
        self._activity.set()

    def close(self) -> None:
        """Stop the watchdog without expiring it.  Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._activity.set()

    async def wait_closed(self) -> None:
        """Wait for the watchdog task to exit."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._activity.wait(), self.timeout)
            except asyncio.TimeoutError:
                if self._closed:
                    return
                self._expired = True
                logger.debug("expired after %1.2fs idle", self.idle)
                self._on_expire()
                return
            if self._closed:
                return
            self._activity.clear()
