"""Cancellable single-request fetch tasks."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import AbortedError, FetchError
from .interface import PriceSource
from .models import PriceSeries, PriceSnapshot, Timeframe

logger = logging.getLogger(__name__)


class Stream(str, Enum):
    SNAPSHOT = "snapshot"
    SERIES = "series"


@dataclass(frozen=True, slots=True)
class FetchRequest:
    stream: Stream
    timeframe: Timeframe | None = None

    @classmethod
    def snapshot(cls) -> FetchRequest:
        return cls(Stream.SNAPSHOT)

    @classmethod
    def series(cls, timeframe: Timeframe) -> FetchRequest:
        return cls(Stream.SERIES, timeframe)

    def describe(self) -> str:
        if self.timeframe is None:
            return self.stream.value
        return f"{self.stream.value}[{self.timeframe.label}]"


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of a completed, non-cancelled fetch: a payload or an error."""

    request: FetchRequest
    payload: PriceSnapshot | PriceSeries | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CancelToken:
    """Cooperative cancellation flag. Cancelling never blocks."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise AbortedError("fetch cancelled")


class FetchTask:
    """One request/response against the price source, owned by whoever issued it.

    run() performs exactly one outbound call and returns a FetchOutcome, or
    raises AbortedError if the token was cancelled before the call was issued
    or while it was in flight. start() runs it as a background asyncio task
    and hands successful or failed outcomes to on_complete; cancelled fetches
    are dropped silently.
    """

    def __init__(
        self,
        source: PriceSource,
        request: FetchRequest,
        on_complete: Callable[[FetchOutcome], None] | None = None,
    ) -> None:
        self.source = source
        self.request = request
        self.token = CancelToken()
        self._on_complete = on_complete
        self._task: asyncio.Task | None = None

    async def run(self) -> FetchOutcome:
        self.token.raise_if_cancelled()
        try:
            payload = await self._call()
        except FetchError as e:
            self.token.raise_if_cancelled()
            return FetchOutcome(self.request, error=e)
        except Exception as e:
            self.token.raise_if_cancelled()
            logger.exception("Unexpected error fetching %s", self.request.describe())
            return FetchOutcome(self.request, error=FetchError(f"Unexpected error: {e}"))
        self.token.raise_if_cancelled()
        return FetchOutcome(self.request, payload=payload)

    def start(self) -> FetchTask:
        self._task = asyncio.create_task(self._run(), name=f"fetch-{self.request.describe()}")
        return self

    def cancel(self) -> None:
        """Mark superseded and abort the underlying request if still running."""
        self.token.cancel()
        if self._task and not self._task.done():
            self._task.cancel()

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def wait(self) -> None:
        """Wait for the task to settle. Cancellation is not an error here."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    # --- Internal ---

    async def _call(self) -> PriceSnapshot | PriceSeries:
        if self.request.stream is Stream.SNAPSHOT:
            return await self.source.fetch_snapshot()
        return await self.source.fetch_series(self.request.timeframe)

    async def _run(self) -> None:
        try:
            outcome = await self.run()
        except AbortedError:
            logger.debug("Discarded cancelled fetch %s", self.request.describe())
            return
        if self._on_complete is not None:
            self._on_complete(outcome)
