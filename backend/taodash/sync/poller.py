"""Periodic snapshot polling."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from .fetch import FetchOutcome, FetchRequest, FetchTask
from .interface import PriceSource
from .reconciler import Reconciler, SnapshotFailed, SnapshotStarted, SnapshotSucceeded

logger = logging.getLogger(__name__)


class SnapshotPoller:
    """Fetches the current-price snapshot on a fixed interval while running.

    States: Stopped -> start() -> Running -> stop() -> Stopped.

    start() issues one fetch immediately and then arms a timer task that
    issues one more every `interval` seconds. A tick that fires while the
    previous fetch is still outstanding is skipped, so at most one snapshot
    fetch is ever in flight. Only the VisibilityScheduler calls start/stop.
    """

    def __init__(self, source: PriceSource, reconciler: Reconciler, interval: float) -> None:
        self._source = source
        self._reconciler = reconciler
        self._interval = interval
        self._timer: asyncio.Task | None = None
        self._fetch: FetchTask | None = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch is not None and self._fetch.in_flight

    def start(self) -> None:
        if self.running:
            logger.debug("Snapshot poller already running")
            return
        self._issue()
        self._timer = asyncio.create_task(self._tick_loop(), name="snapshot-poller")
        logger.info("Snapshot poller started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        """Disarm the timer and cancel any in-flight fetch. Safe to call multiple times."""
        timer, fetch = self._timer, self._fetch
        self._timer = None
        self._fetch = None
        if timer is None and fetch is None:
            return
        if fetch is not None:
            fetch.cancel()
        if timer is not None and not timer.done():
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        if fetch is not None:
            await fetch.wait()
        logger.info("Snapshot poller stopped")

    # --- Internal ---

    async def _tick_loop(self) -> None:
        """Fire on interval. First fetch already happened in start()."""
        while True:
            await asyncio.sleep(self._interval)
            if self.fetch_in_flight:
                self.skipped_ticks += 1
                logger.debug("Snapshot fetch still in flight; skipping tick")
                continue
            self._issue()

    def _issue(self) -> None:
        self._reconciler.apply(SnapshotStarted())
        self._fetch = FetchTask(self._source, FetchRequest.snapshot(), self._on_complete).start()

    def _on_complete(self, outcome: FetchOutcome) -> None:
        if outcome.ok:
            self._reconciler.apply(SnapshotSucceeded(outcome.payload))
            return
        logger.warning("Snapshot fetch failed: %s", outcome.error.reason)
        self._reconciler.apply(SnapshotFailed())
