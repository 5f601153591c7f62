"""Abstract interface for remote price sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import PriceSeries, PriceSnapshot, Timeframe


class PriceSource(ABC):
    """Contract for the remote price API consumed by the sync engine.

    Each call is exactly one outbound request. Implementations raise
    NetworkError or ParseError (both FetchError subclasses) on failure and
    never return partial results.

    Lifecycle:
        source = create_price_source(config)
        snapshot = await source.fetch_snapshot()
        series = await source.fetch_series(Timeframe.D7)
        # ... engine torn down ...
        await source.aclose()
    """

    @abstractmethod
    async def fetch_snapshot(self) -> PriceSnapshot:
        """Fetch the current price, 24h statistics and all-time high."""

    @abstractmethod
    async def fetch_series(self, timeframe: Timeframe) -> PriceSeries:
        """Fetch [timestamp, price] samples covering the given lookback window."""

    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""
