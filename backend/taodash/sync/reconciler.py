"""Merge fetch events into the UI-facing ViewModel."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from .models import FetchState, PriceSeries, PriceSnapshot, Timeframe, ViewModel

logger = logging.getLogger(__name__)

SNAPSHOT_ERROR_MESSAGE = "Failed to fetch price data. Please try again later."
SERIES_ERROR_MESSAGE = "Failed to fetch price history. Please try again later."


@dataclass(frozen=True, slots=True)
class SnapshotStarted:
    pass


@dataclass(frozen=True, slots=True)
class SnapshotSucceeded:
    snapshot: PriceSnapshot


@dataclass(frozen=True, slots=True)
class SnapshotFailed:
    reason: str = SNAPSHOT_ERROR_MESSAGE


@dataclass(frozen=True, slots=True)
class SeriesStarted:
    timeframe: Timeframe


@dataclass(frozen=True, slots=True)
class SeriesSucceeded:
    timeframe: Timeframe
    series: PriceSeries


@dataclass(frozen=True, slots=True)
class SeriesFailed:
    timeframe: Timeframe
    reason: str = SERIES_ERROR_MESSAGE


Event = (
    SnapshotStarted
    | SnapshotSucceeded
    | SnapshotFailed
    | SeriesStarted
    | SeriesSucceeded
    | SeriesFailed
)

Listener = Callable[[ViewModel], None]


def reconcile(view: ViewModel, event: Event) -> ViewModel:
    """Pure merge: (current view, event) -> new view.

    Failures keep last-known-good snapshot and series. Series results for a
    timeframe other than the selected one are ignored. A series success clears
    only the series banner; snapshot errors wait for a snapshot success.
    """
    if isinstance(event, SnapshotStarted):
        return replace(view, snapshot_loading=True, snapshot_state=FetchState.IN_FLIGHT)

    if isinstance(event, SnapshotSucceeded):
        return replace(
            view,
            previous_snapshot=view.snapshot,
            snapshot=event.snapshot,
            snapshot_loading=False,
            snapshot_state=FetchState.SUCCEEDED,
            error_message=None,
        )

    if isinstance(event, SnapshotFailed):
        return replace(
            view,
            snapshot_loading=False,
            snapshot_state=FetchState.FAILED,
            error_message=event.reason,
        )

    if isinstance(event, SeriesStarted):
        return replace(
            view,
            selected_timeframe=event.timeframe,
            series_loading=True,
            series_state=FetchState.IN_FLIGHT,
        )

    if isinstance(event, (SeriesSucceeded, SeriesFailed)):
        if event.timeframe != view.selected_timeframe:
            return view
        if isinstance(event, SeriesSucceeded):
            return replace(
                view,
                series=event.series,
                series_timeframe=event.timeframe,
                series_loading=False,
                series_state=FetchState.SUCCEEDED,
                error_message=(
                    None if view.error_message == SERIES_ERROR_MESSAGE else view.error_message
                ),
            )
        return replace(
            view,
            series_loading=False,
            series_state=FetchState.FAILED,
            error_message=event.reason,
        )

    raise TypeError(f"Unknown event: {event!r}")


class Reconciler:
    """Sole owner of the ViewModel.

    All mutation goes through apply(), which runs on the event loop thread, so
    there is never more than one writer. Listeners are notified synchronously
    after every change.
    """

    def __init__(self, default_timeframe: Timeframe) -> None:
        self._view = ViewModel(selected_timeframe=default_timeframe)
        self._listeners: list[Listener] = []
        self._version: int = 0  # Monotonically increasing; bumped on every change

    @property
    def view(self) -> ViewModel:
        return self._view

    @property
    def version(self) -> int:
        """Current version counter. Useful for SSE change detection."""
        return self._version

    def apply(self, event: Event) -> ViewModel:
        new_view = reconcile(self._view, event)
        if new_view is self._view:
            logger.debug("Event %s did not change the view", type(event).__name__)
            return new_view
        self._view = new_view
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(new_view)
            except Exception:
                logger.exception("ViewModel listener failed")
        return new_view

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()
