"""The market data sync engine: one asset, one dashboard surface."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .config import EngineConfig
from .factory import create_price_source
from .history import HistoryLoader
from .interface import PriceSource
from .models import Timeframe, ViewModel
from .poller import SnapshotPoller
from .reconciler import Listener, Reconciler
from .visibility import VisibilityScheduler

logger = logging.getLogger(__name__)


class SyncEngine:
    """Wires the poller, history loader, reconciler and visibility scheduler.

    Lifecycle:
        engine = SyncEngine(EngineConfig.from_env())
        await engine.start()                # initial series load + polling if visible
        await engine.set_visible(False)     # host surface backgrounded
        engine.select_timeframe("30d")
        await engine.stop()                 # pause polling
        await engine.dispose()              # surface closed; engine unusable afterwards
    """

    def __init__(self, config: EngineConfig | None = None, source: PriceSource | None = None) -> None:
        self.config = config or EngineConfig()
        self._source = source or create_price_source(self.config)
        self._reconciler = Reconciler(self.config.default_timeframe)
        self._history = HistoryLoader(self._source, self._reconciler)
        self._poller = SnapshotPoller(self._source, self._reconciler, self.config.poll_interval)
        self._scheduler = VisibilityScheduler(self._poller, self._history)
        self._started = False
        self._disposed = False

    @classmethod
    def create(cls, config: EngineConfig | None = None) -> SyncEngine:
        return cls(config or EngineConfig.from_env())

    @property
    def started(self) -> bool:
        return self._started

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def visible(self) -> bool:
        return self._scheduler.visible

    @property
    def version(self) -> int:
        return self._reconciler.version

    async def start(self, visible: bool = True) -> None:
        """Begin polling if visible. The first call also loads the selected series.

        Calling start() again after stop() resumes polling.
        """
        self._check_alive()
        if not self._started:
            self._started = True
            logger.info(
                "Sync engine started: asset=%s timeframe=%s",
                self.config.asset_id,
                self._reconciler.view.selected_timeframe.label,
            )
            self._history.reload()
        await self._scheduler.set_visible(visible)

    async def stop(self) -> None:
        """Pause polling. The view model and selection are kept."""
        if self._disposed:
            return
        await self._scheduler.set_visible(False)

    async def set_visible(self, visible: bool) -> None:
        """Host surface visibility signal."""
        self._check_alive()
        await self._scheduler.set_visible(visible)

    def select_timeframe(self, timeframe: Timeframe | str | int) -> None:
        self._check_alive()
        self._history.select_timeframe(timeframe)

    def get_view_model(self) -> ViewModel:
        return self._reconciler.view

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Be notified with the new ViewModel after every change."""
        return self._reconciler.subscribe(listener)

    async def dispose(self) -> None:
        """Tear down: stop polling, cancel pending fetches, close the source."""
        if self._disposed:
            return
        self._disposed = True
        await self._scheduler.teardown()
        self._reconciler.clear_listeners()
        await self._source.aclose()
        logger.info("Sync engine disposed")

    def _check_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("SyncEngine has been disposed")
