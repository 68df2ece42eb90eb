"""Tests for the price fetcher."""

import pytest
import httpx
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from app.services.price_fetcher import PriceFetcher


def bar(close: str) -> dict:
    return {
        "datetime": "2024-01-01 12:00:00",
        "open": "2000",
        "high": "2010",
        "low": "1990",
        "close": close,
        "volume": "100",
    }


class TestPriceFetcher:
    """Tests for PriceFetcher."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.get_time_series = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_no_pairs_skips_request(self, client):
        fetcher = PriceFetcher(client)

        assert await fetcher.fetch([]) == []
        client.get_time_series.assert_not_called()

    @pytest.mark.asyncio
    async def test_multi_symbol_with_erroring_pair(self, client):
        client.get_time_series.return_value = {
            "EUR/USD": {"status": "error", "code": 400, "message": "invalid symbol"},
            "XAU/USD": {"meta": {"symbol": "XAU/USD"}, "values": [bar("2005")]},
        }
        fetcher = PriceFetcher(client, interval="1min")

        prices = await fetcher.fetch(["EUR/USD", "XAU/USD"])

        assert len(prices) == 1
        assert prices[0].pair == "XAU/USD"
        assert prices[0].current_price == Decimal("2005")
        client.get_time_series.assert_awaited_once_with(["EUR/USD", "XAU/USD"], interval="1min")

    @pytest.mark.asyncio
    async def test_network_error_returns_empty(self, client):
        client.get_time_series.side_effect = httpx.ConnectTimeout("timed out")
        fetcher = PriceFetcher(client)

        assert await fetcher.fetch(["XAU/USD"]) == []

    @pytest.mark.asyncio
    async def test_invalid_json_returns_empty(self, client):
        client.get_time_series.side_effect = ValueError("Expecting value")
        fetcher = PriceFetcher(client)

        assert await fetcher.fetch(["XAU/USD"]) == []

    @pytest.mark.asyncio
    async def test_provider_error_returns_empty(self, client):
        client.get_time_series.return_value = {
            "code": 401,
            "message": "apikey incorrect",
            "status": "error",
        }
        fetcher = PriceFetcher(client)

        assert await fetcher.fetch(["XAU/USD"]) == []
