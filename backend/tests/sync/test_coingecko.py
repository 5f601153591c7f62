"""Tests for CoinGeckoPriceSource (HTTP mocked with respx)."""

from datetime import datetime, timezone

import httpx
import pytest
import respx

from taodash.sync.coingecko_client import COIN_PARAMS, CoinGeckoPriceSource
from taodash.sync.errors import NetworkError, ParseError
from taodash.sync.models import Timeframe

BASE = "https://api.coingecko.test/api/v3"


def _coin_body(price=310.5, **overrides) -> dict:
    market = {
        "current_price": {"usd": price, "eur": 280.0},
        "high_24h": {"usd": 320.0},
        "low_24h": {"usd": 295.0},
        "price_change_percentage_24h": 2.1,
        "ath": {"usd": 757.6},
        "ath_date": {"usd": "2024-03-07T18:45:20.214Z"},
    }
    market.update(overrides)
    return {"id": "bittensor", "market_data": market}


@pytest.mark.asyncio
class TestCoinGeckoPriceSource:
    """Unit tests for request shapes and response parsing."""

    async def test_snapshot_request_and_parse(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            route = mock.get("/coins/bittensor").mock(
                return_value=httpx.Response(200, json=_coin_body())
            )
            snap = await source.fetch_snapshot()

        assert route.call_count == 1
        assert dict(route.calls.last.request.url.params) == COIN_PARAMS
        assert snap.price == 310.5
        assert snap.high_24h == 320.0
        assert snap.low_24h == 295.0
        assert snap.change_24h_pct == 2.1
        assert snap.all_time_high == 757.6
        assert snap.all_time_high_date == datetime(
            2024, 3, 7, 18, 45, 20, 214000, tzinfo=timezone.utc
        )
        await source.aclose()

    async def test_snapshot_missing_optional_fields(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        body = {"market_data": {"current_price": {"usd": 12}, "high_24h": None}}
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor").mock(return_value=httpx.Response(200, json=body))
            snap = await source.fetch_snapshot()

        assert snap.price == 12.0
        assert snap.high_24h is None
        assert snap.all_time_high_date is None
        await source.aclose()

    async def test_simple_price_variant(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE, simple=True)
        body = {"bittensor": {"usd": 301.2, "usd_24h_change": -3.5}}
        with respx.mock(base_url=BASE) as mock:
            route = mock.get("/simple/price").mock(return_value=httpx.Response(200, json=body))
            snap = await source.fetch_snapshot()

        assert dict(route.calls.last.request.url.params) == {
            "ids": "bittensor",
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }
        assert snap.price == 301.2
        assert snap.change_24h_pct == -3.5
        assert snap.high_24h is None
        await source.aclose()

    async def test_series_request_and_parse(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        body = {"prices": [[2000, 2.0], [1000, 1.0], [3000, 3.0]], "total_volumes": []}
        with respx.mock(base_url=BASE) as mock:
            route = mock.get("/coins/bittensor/market_chart").mock(
                return_value=httpx.Response(200, json=body)
            )
            series = await source.fetch_series(Timeframe.D180)

        assert dict(route.calls.last.request.url.params) == {"vs_currency": "usd", "days": "180"}
        assert series.to_pairs() == [[1000, 1.0], [2000, 2.0], [3000, 3.0]]
        await source.aclose()

    async def test_api_key_header(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE, api_key="demo-key")
        with respx.mock(base_url=BASE) as mock:
            route = mock.get("/coins/bittensor").mock(
                return_value=httpx.Response(200, json=_coin_body())
            )
            await source.fetch_snapshot()

        assert route.calls.last.request.headers["x-cg-demo-api-key"] == "demo-key"
        await source.aclose()

    @pytest.mark.parametrize(
        "side_effect",
        [httpx.ConnectTimeout("timed out"), httpx.ConnectError("refused")],
    )
    async def test_transport_errors_are_network_errors(self, side_effect):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor").mock(side_effect=side_effect)
            with pytest.raises(NetworkError):
                await source.fetch_snapshot()
        await source.aclose()

    @pytest.mark.parametrize("status", [429, 500, 404])
    async def test_http_status_is_network_error(self, status):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor/market_chart").mock(return_value=httpx.Response(status))
            with pytest.raises(NetworkError, match=str(status)):
                await source.fetch_series(Timeframe.D7)
        await source.aclose()

    @pytest.mark.parametrize(
        "body",
        [
            {"market_data": {}},
            {"market_data": {"current_price": {"usd": None}}},
            {"market_data": {"current_price": {"usd": "310.5"}}},
            {"market_data": {"current_price": {"usd": -1}}},
            {"error": "coin not found"},
            [],
        ],
    )
    async def test_malformed_snapshot_is_parse_error(self, body):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor").mock(return_value=httpx.Response(200, json=body))
            with pytest.raises(ParseError):
                await source.fetch_snapshot()
        await source.aclose()

    @pytest.mark.parametrize(
        "body",
        [{}, {"prices": None}, {"prices": [[1000]]}, {"prices": [[1000, -5.0]]}],
    )
    async def test_malformed_series_is_parse_error(self, body):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor/market_chart").mock(
                return_value=httpx.Response(200, json=body)
            )
            with pytest.raises(ParseError):
                await source.fetch_series(Timeframe.D7)
        await source.aclose()

    async def test_invalid_json_is_parse_error(self):
        source = CoinGeckoPriceSource("bittensor", base_url=BASE)
        with respx.mock(base_url=BASE) as mock:
            mock.get("/coins/bittensor").mock(
                return_value=httpx.Response(200, content=b"<html>rate limited</html>")
            )
            with pytest.raises(ParseError):
                await source.fetch_snapshot()
        await source.aclose()

    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient(base_url=BASE)
        source = CoinGeckoPriceSource("bittensor", client=client)
        await source.aclose()
        await source.aclose()  # Should not raise
        assert not client.is_closed
        await client.aclose()
