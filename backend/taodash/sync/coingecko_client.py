"""CoinGecko REST API client for live and historical prices."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from typing import Any

import httpx

from .errors import NetworkError, ParseError
from .interface import PriceSource
from .models import PriceSeries, PriceSnapshot, Timeframe

logger = logging.getLogger(__name__)

# Query string for the full coin endpoint, market data only.
COIN_PARAMS: dict[str, str] = {
    "localization": "false",
    "tickers": "false",
    "market_data": "true",
    "community_data": "false",
    "developer_data": "false",
    "sparkline": "false",
}


class CoinGeckoPriceSource(PriceSource):
    """PriceSource backed by the CoinGecko public API.

    Snapshots come from either GET /coins/{id} (full: 24h range and ATH) or
    GET /simple/price (price and 24h change only). Series come from
    GET /coins/{id}/market_chart.

    Rate limits:
      - Public tier: roughly 10-30 req/min -> poll every 30s (default)
      - Demo key: sent as x-cg-demo-api-key
    """

    def __init__(
        self,
        asset_id: str,
        base_url: str = "https://api.coingecko.com/api/v3",
        api_key: str | None = None,
        simple: bool = False,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._asset_id = asset_id
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._simple = simple
        self._timeout = timeout
        # Shared client for connection reuse (created lazily unless injected)
        self._client = client
        self._owns_client = client is None

    async def fetch_snapshot(self) -> PriceSnapshot:
        if self._simple:
            data = await self._get_json(
                "/simple/price",
                {"ids": self._asset_id, "vs_currencies": "usd", "include_24hr_change": "true"},
            )
            return self._parse_simple_price(data)

        data = await self._get_json(f"/coins/{self._asset_id}", COIN_PARAMS)
        return self._parse_coin(data)

    async def fetch_series(self, timeframe: Timeframe) -> PriceSeries:
        data = await self._get_json(
            f"/coins/{self._asset_id}/market_chart",
            {"vs_currency": "usd", "days": str(timeframe.days)},
        )
        try:
            pairs = data["prices"]
            series = PriceSeries.from_pairs(pairs)
            if any(point.price < 0 for point in series):
                raise ValueError("negative price in series")
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Malformed market_chart response: {e!r}") from e
        logger.debug("CoinGecko series %s: %d points", timeframe.label, len(series))
        return series

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        if self._owns_client:
            self._client = None

    # --- Internal ---

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"accept": "application/json"}
            if self._api_key:
                headers["x-cg-demo-api-key"] = self._api_key
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
            )
            self._owns_client = True
        return self._client

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        """Issue one GET and decode the body. Maps transport failures to FetchErrors."""
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout requesting {path}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {path} failed: {e}") from e

        if response.status_code != 200:
            raise NetworkError(f"HTTP {response.status_code} from {path}")

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise ParseError(f"Invalid JSON from {path}: {e}") from e

    def _parse_coin(self, data: Any) -> PriceSnapshot:
        try:
            market = data["market_data"]
            price = _number(market["current_price"]["usd"])
            if price is None:
                raise ValueError("current_price.usd is null")
            return PriceSnapshot(
                price=price,
                high_24h=_number(_usd(market, "high_24h")),
                low_24h=_number(_usd(market, "low_24h")),
                change_24h_pct=_number(market.get("price_change_percentage_24h")),
                all_time_high=_number(_usd(market, "ath")),
                all_time_high_date=_iso_datetime(_usd(market, "ath_date")),
                observed_at=time.time(),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"Malformed coin response: {e!r}") from e

    def _parse_simple_price(self, data: Any) -> PriceSnapshot:
        try:
            entry = data[self._asset_id]
            price = _number(entry["usd"])
            if price is None:
                raise ValueError("usd is null")
            return PriceSnapshot(
                price=price,
                change_24h_pct=_number(entry.get("usd_24h_change")),
                observed_at=time.time(),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"Malformed simple/price response: {e!r}") from e


def _usd(market: dict, key: str) -> Any:
    """market_data[key]["usd"], or None if either level is missing."""
    block = market.get(key)
    if not block:
        return None
    return block.get("usd")


def _number(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _iso_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)
