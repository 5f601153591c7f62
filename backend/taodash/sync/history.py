"""Historical series loading per timeframe selection."""

from __future__ import annotations

import logging

from .fetch import FetchOutcome, FetchRequest, FetchTask
from .interface import PriceSource
from .models import Timeframe
from .reconciler import Reconciler, SeriesFailed, SeriesStarted, SeriesSucceeded

logger = logging.getLogger(__name__)


class HistoryLoader:
    """Issues one series fetch per timeframe change.

    A newer selection cancels the pending fetch for the old one. Completions
    are committed only if their fetch is still current and its timeframe is
    still the selected one, so a slow response for an abandoned timeframe can
    never overwrite the series.
    """

    def __init__(self, source: PriceSource, reconciler: Reconciler) -> None:
        self._source = source
        self._reconciler = reconciler
        self._fetch: FetchTask | None = None

    @property
    def selected_timeframe(self) -> Timeframe:
        return self._reconciler.view.selected_timeframe

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch is not None and self._fetch.in_flight

    def select_timeframe(self, timeframe: Timeframe | str | int) -> None:
        timeframe = Timeframe.parse(timeframe)
        if timeframe == self.selected_timeframe:
            logger.debug("Timeframe %s already selected", timeframe.label)
            return
        logger.info("Timeframe selected: %s", timeframe.label)
        self._load(timeframe)

    def reload(self) -> None:
        """(Re)fetch the series for the currently selected timeframe."""
        self._load(self.selected_timeframe)

    async def cancel(self) -> None:
        fetch, self._fetch = self._fetch, None
        if fetch is not None:
            fetch.cancel()
            await fetch.wait()

    # --- Internal ---

    def _load(self, timeframe: Timeframe) -> None:
        if self._fetch is not None:
            self._fetch.cancel()
        self._reconciler.apply(SeriesStarted(timeframe))
        self._fetch = FetchTask(
            self._source, FetchRequest.series(timeframe), self._on_complete
        ).start()

    def _on_complete(self, outcome: FetchOutcome) -> None:
        timeframe = outcome.request.timeframe
        if timeframe != self.selected_timeframe:
            logger.debug("Discarding superseded series for %s", timeframe.label)
            return
        if outcome.ok:
            self._reconciler.apply(SeriesSucceeded(timeframe, outcome.payload))
            return
        logger.warning("Series fetch for %s failed: %s", timeframe.label, outcome.error.reason)
        self._reconciler.apply(SeriesFailed(timeframe))
