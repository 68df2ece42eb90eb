"""Tests for the indicator updater service."""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from app.models import IndicatorReading
from app.services.indicator_updater import IndicatorUpdater


def payload(field: str, values: dict[str, str]) -> dict:
    return {pair: {"values": [{field: value}]} for pair, value in values.items()}


def reading(pair: str, name: str) -> IndicatorReading:
    return IndicatorReading(
        pair=pair,
        indicator_name=name,
        value="50.0",
        status="Neutral",
        color="#888888",
        timeframe="15M",
    )


class TestIndicatorUpdater:
    """Tests for IndicatorUpdater."""

    PAIRS = ["XAU/USD", "BTC/USD"]

    @pytest.fixture
    def client(self):
        responses = {
            "rsi": payload("rsi", {"XAU/USD": "72.3", "BTC/USD": "50"}),
            "macd": payload("macd", {"XAU/USD": "0.62", "BTC/USD": "0.37"}),
            "atr": payload("atr", {"XAU/USD": "25", "BTC/USD": "100"}),
        }
        client = MagicMock()
        client.get_indicator = AsyncMock(
            side_effect=lambda name, pairs, interval: responses[name]
        )
        return client

    @pytest.fixture
    def indicator_repo(self):
        repo = MagicMock()
        repo.update_reading = AsyncMock(return_value=True)
        return repo

    @pytest.fixture
    def market_repo(self):
        repo = MagicMock()
        repo.get_current_prices = AsyncMock(
            return_value={"XAU/USD": Decimal("2000"), "BTC/USD": Decimal("43000")}
        )
        return repo

    @pytest.fixture
    def updater(self, client, indicator_repo, market_repo):
        return IndicatorUpdater(
            client=client,
            indicator_repo=indicator_repo,
            market_repo=market_repo,
            interval="15min",
            timeframe="15M",
        )

    @pytest.mark.asyncio
    async def test_calculate_all_families(self, updater, client):
        readings = await updater.calculate(self.PAIRS)

        assert len(readings) == 6
        assert [r.indicator_name for r in readings[:2]] == ["ATR", "ATR"]
        assert {c.args[0] for c in client.get_indicator.await_args_list} == {"rsi", "macd", "atr"}
        by_key = {(r.pair, r.indicator_name): r for r in readings}
        assert by_key[("XAU/USD", "RSI")].status == "Overbought"
        assert by_key[("BTC/USD", "MACD")].value == "0.37"
        assert by_key[("BTC/USD", "ATR")].status == "Low Volatility"

    @pytest.mark.asyncio
    async def test_failed_family_does_not_block_others(self, updater, client):
        original = client.get_indicator.side_effect

        async def flaky(name, pairs, interval):
            return None if name == "macd" else original(name, pairs, interval)

        client.get_indicator.side_effect = flaky

        readings = await updater.calculate(self.PAIRS)

        assert len(readings) == 4
        assert "MACD" not in {r.indicator_name for r in readings}

    @pytest.mark.asyncio
    async def test_price_load_failure_disables_atr(self, updater, market_repo):
        market_repo.get_current_prices.side_effect = RuntimeError("db down")

        readings = await updater.calculate(self.PAIRS)

        assert {r.indicator_name for r in readings} == {"RSI", "MACD"}

    @pytest.mark.asyncio
    async def test_save_counts(self, updater, indicator_repo):
        indicator_repo.update_reading.side_effect = [True, False, RuntimeError("timeout")]
        readings = [
            reading("XAU/USD", "RSI"),
            reading("BTC/USD", "RSI"),
            reading("XAU/USD", "MACD"),
        ]

        summary = await updater.save(readings)

        assert summary.saved == 1
        assert summary.missing_rows == 1
        assert summary.persistence_errors == ["XAU/USD/MACD: timeout"]
        assert summary.readings == readings

    @pytest.mark.asyncio
    async def test_save_passes_insert_flag(self, client, indicator_repo, market_repo):
        updater = IndicatorUpdater(
            client=client,
            indicator_repo=indicator_repo,
            market_repo=market_repo,
            insert_missing=True,
        )

        await updater.save([reading("XAU/USD", "RSI")])

        assert indicator_repo.update_reading.await_args.kwargs["insert_missing"] is True
