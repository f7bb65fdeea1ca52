"""Serialization of store mutations and scheduling of reconciliation scans.

One ``Serializer`` exists per process. Every entry point that can touch the
store (inbound deltas, manual dispatch, startup and follow-up scans) runs
inside ``Serializer.exclusive()``, so at most one pipeline is active and
waiting callers are served in arrival order. Running several processes
against the same store breaks this guarantee.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

log = getLogger(__name__)

type ScanCallback = Callable[[], Awaitable[object]]


class Serializer:
    """Process-wide mutual exclusion gate plus a single follow-up timer slot."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._pending: asyncio.TimerHandle | None = None
        self._running: set[asyncio.Task[object]] = set()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> None:
        await self._lock.acquire()

    def release(self) -> None:
        self._lock.release()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule_follow_up(self, delay_seconds: float, callback: ScanCallback) -> None:
        """Run ``callback`` after ``delay_seconds``, replacing any unfired schedule."""

        self.cancel_pending()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(delay_seconds, self._fire, callback)

    def cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def drain(self) -> None:
        """Wait for follow-ups that already fired (used on shutdown and in tests)."""

        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    def _fire(self, callback: ScanCallback) -> None:
        self._pending = None
        task: asyncio.Task[object] = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._running.discard)


class ReconciliationScheduler:
    """Decide when reconciliation scans run.

    ``run_scan(include_deletes)`` must itself go through the serializer gate;
    the scheduler only owns timing.
    """

    def __init__(
        self,
        *,
        serializer: Serializer,
        run_scan: Callable[[bool], Awaitable[object]],
        startup_delay_seconds: float = 0.5,
        follow_up_delay_seconds: float | None = 5.0,
    ) -> None:
        self._serializer = serializer
        self._run_scan = run_scan
        self._startup_delay_seconds = startup_delay_seconds
        self._follow_up_delay_seconds = follow_up_delay_seconds

    async def run_startup(self) -> None:
        """Full scan of both staging graphs after the startup delay."""

        if self._startup_delay_seconds > 0:
            await asyncio.sleep(self._startup_delay_seconds)
        log.info("Running startup scan of the staging graphs")
        await self._run_scan(True)

    async def trigger(self, *, include_deletes: bool = True) -> None:
        await self._run_scan(include_deletes)

    def schedule_follow_up(self) -> None:
        """Debounced inserts-only rescan; placing one subject may unblock others."""

        if self._follow_up_delay_seconds is None:
            return
        log.debug("Scheduling follow-up scan in %ss", self._follow_up_delay_seconds)
        self._serializer.schedule_follow_up(self._follow_up_delay_seconds, self._follow_up)

    def cancel_follow_up(self) -> None:
        self._serializer.cancel_pending()

    async def _follow_up(self) -> object:
        return await self._run_scan(False)
