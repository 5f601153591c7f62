"""GBM-based offline price source."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from datetime import datetime, timezone

import numpy as np

from .interface import PriceSource
from .models import PriceSeries, PriceSnapshot, Timeframe

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class SimulatedPriceSource(PriceSource):
    """PriceSource that fabricates prices with Geometric Brownian Motion.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        mu     = annualized drift
        sigma  = annualized volatility (crypto assets run hot, ~0.8)
        dt     = time step as a fraction of a 365-day year
        Z      = standard normal draw

    Each fetch_snapshot() advances the live price by the wall-clock time since
    the previous call. Series are generated backwards from the live price so the
    chart always ends where the ticker currently is.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600

    def __init__(
        self,
        start_price: float = 300.0,
        sigma: float = 0.8,
        mu: float = 0.0,
        latency: float = 0.0,
        seed: int | None = None,
    ) -> None:
        if start_price <= 0:
            raise ValueError(f"start_price must be > 0, got {start_price}")
        self._price = start_price
        self._sigma = sigma
        self._mu = mu
        self._latency = latency
        self._rng = np.random.default_rng(seed)
        self._last_step = time.time()
        self._ath = start_price
        self._ath_at = self._last_step

    async def fetch_snapshot(self) -> PriceSnapshot:
        await self._simulate_latency()
        now = time.time()
        dt = max(now - self._last_step, 1.0) / self.SECONDS_PER_YEAR
        self._last_step = now
        self._price = round(self._gbm_step(self._price, dt), 4)
        if self._price > self._ath:
            self._ath, self._ath_at = self._price, now

        day = self._path(self._price, points=288, span_days=1)
        change = (self._price - day[0]) / day[0] * 100
        return PriceSnapshot(
            price=self._price,
            high_24h=round(float(day.max()), 4),
            low_24h=round(float(day.min()), 4),
            change_24h_pct=round(float(change), 4),
            all_time_high=round(self._ath, 4),
            all_time_high_date=datetime.fromtimestamp(self._ath_at, tz=timezone.utc),
            observed_at=now,
        )

    async def fetch_series(self, timeframe: Timeframe) -> PriceSeries:
        await self._simulate_latency()
        # Roughly CoinGecko's granularity: 5-minutely for 1d, hourly up to 90d, daily after.
        if timeframe.days == 1:
            points = 288
        elif timeframe.days <= 90:
            points = timeframe.days * 24
        else:
            points = timeframe.days
        prices = self._path(self._price, points=points, span_days=timeframe.days)
        end_ms = int(time.time() * 1000)
        step_ms = timeframe.days * MS_PER_DAY // (points - 1)
        start_ms = end_ms - step_ms * (points - 1)
        timestamps = start_ms + step_ms * np.arange(points, dtype=np.int64)
        logger.debug("Simulated series %s: %d points", timeframe.label, points)
        return PriceSeries.from_pairs(zip(timestamps.tolist(), np.round(prices, 4).tolist()))

    # --- Internals ---

    def _gbm_step(self, price: float, dt: float) -> float:
        z = self._rng.standard_normal()
        drift = (self._mu - 0.5 * self._sigma**2) * dt
        diffusion = self._sigma * math.sqrt(dt) * z
        return price * math.exp(drift + diffusion)

    def _path(self, end_price: float, points: int, span_days: int) -> np.ndarray:
        """GBM path of `points` samples over `span_days`, rescaled to end at end_price."""
        dt = span_days / 365 / max(points - 1, 1)
        z = self._rng.standard_normal(points - 1)
        increments = (self._mu - 0.5 * self._sigma**2) * dt + self._sigma * math.sqrt(dt) * z
        log_path = np.concatenate(([0.0], np.cumsum(increments)))
        return end_price * np.exp(log_path - log_path[-1])

    async def _simulate_latency(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
