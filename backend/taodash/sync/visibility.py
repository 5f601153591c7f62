"""Visibility-driven start/stop of the snapshot poller."""

from __future__ import annotations

import logging

from .history import HistoryLoader
from .poller import SnapshotPoller

logger = logging.getLogger(__name__)


class VisibilityScheduler:
    """The only component allowed to start or stop the poller.

    Repeated signals with the same value are ignored, so a visible surface
    never accumulates duplicate timers.
    """

    def __init__(self, poller: SnapshotPoller, history: HistoryLoader) -> None:
        self._poller = poller
        self._history = history
        self._visible = False

    @property
    def visible(self) -> bool:
        return self._visible

    async def set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        if visible:
            logger.info("Surface visible; resuming polling")
            self._poller.start()
        else:
            logger.info("Surface hidden; pausing polling")
            await self._poller.stop()

    async def teardown(self) -> None:
        """Stop polling and cancel the pending series fetch, whatever the visibility."""
        self._visible = False
        await self._poller.stop()
        await self._history.cancel()
