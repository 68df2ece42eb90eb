"""Tests for the TwelveData REST client."""

import pytest
import httpx

from app.clients import TwelveDataClient


def make_client(handler) -> TwelveDataClient:
    return TwelveDataClient(
        api_key="test-key",
        base_url="https://api.test",
        transport=httpx.MockTransport(handler),
    )


class TestTwelveDataClient:
    """Tests for TwelveDataClient requests."""

    @pytest.mark.asyncio
    async def test_time_series_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"meta": {"symbol": "XAU/USD"}, "values": []})

        async with make_client(handler) as client:
            data = await client.get_time_series(["XAU/USD", "BTC/USD"], interval="1min")

        assert data["meta"]["symbol"] == "XAU/USD"
        assert seen["path"] == "/time_series"
        assert seen["params"] == {
            "apikey": "test-key",
            "interval": "1min",
            "symbol": "XAU/USD,BTC/USD",
        }

    @pytest.mark.asyncio
    async def test_time_series_raises_on_http_error(self):
        def handler(request):
            return httpx.Response(500, text="upstream down")

        client = make_client(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_time_series(["XAU/USD"])
        await client.close()

    @pytest.mark.asyncio
    async def test_indicator_endpoint_is_lowercased(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["interval"] = request.url.params["interval"]
            return httpx.Response(200, json={"XAU/USD": {"values": [{"rsi": "55"}]}})

        async with make_client(handler) as client:
            data = await client.get_indicator("RSI", ["XAU/USD"], interval="15min")

        assert seen == {"path": "/rsi", "interval": "15min"}
        assert data["XAU/USD"]["values"][0]["rsi"] == "55"

    @pytest.mark.asyncio
    async def test_indicator_failure_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            assert await client.get_indicator("macd", ["XAU/USD"]) is None

    @pytest.mark.asyncio
    async def test_indicator_bad_json_returns_none(self):
        def handler(request):
            return httpx.Response(200, text="<html>not json</html>")

        async with make_client(handler) as client:
            assert await client.get_indicator("atr", ["XAU/USD"]) is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        await client.get_time_series(["XAU/USD"])
        await client.close()
        await client.close()
        assert client._client is None
