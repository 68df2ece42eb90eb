"""Indicator updater: fetch RSI/MACD/ATR batches and store classified readings."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.clients import TwelveDataClient
from app.models import IndicatorReading
from app.storage import IndicatorRepository, MarketRepository
from core.indicators import calculate_indicators

logger = logging.getLogger(__name__)


@dataclass
class IndicatorUpdateSummary:
    """Readings produced by one indicator pass and how many were stored."""
    readings: list[IndicatorReading] = field(default_factory=list)
    saved: int = 0
    missing_rows: int = 0
    persistence_errors: list[str] = field(default_factory=list)


class IndicatorUpdater:
    """Fetch the three indicator batches concurrently and persist readings."""

    def __init__(
        self,
        client: TwelveDataClient,
        indicator_repo: IndicatorRepository | None = None,
        market_repo: MarketRepository | None = None,
        interval: str = "15min",
        timeframe: str = "15M",
        insert_missing: bool = False,
    ):
        self.client = client
        self.indicator_repo = indicator_repo or IndicatorRepository()
        self.market_repo = market_repo or MarketRepository()
        self.interval = interval
        self.timeframe = timeframe
        self.insert_missing = insert_missing

    async def calculate(self, pairs: list[str]) -> list[IndicatorReading]:
        """Fetch raw batches and current prices, then classify."""
        atr_raw, rsi_raw, macd_raw, prices = await asyncio.gather(
            self.client.get_indicator("atr", pairs, self.interval),
            self.client.get_indicator("rsi", pairs, self.interval),
            self.client.get_indicator("macd", pairs, self.interval),
            self._load_prices(pairs),
        )
        return calculate_indicators(
            rsi_raw=rsi_raw,
            macd_raw=macd_raw,
            atr_raw=atr_raw,
            pairs=pairs,
            prices=prices,
            timeframe=self.timeframe,
        )

    async def _load_prices(self, pairs: list[str]) -> dict:
        """Current prices for ATR; an empty map disables ATR for this pass."""
        try:
            return await self.market_repo.get_current_prices(pairs)
        except Exception as e:
            logger.error(f"Error fetching prices from DB: {e}")
            return {}

    async def save(self, readings: list[IndicatorReading]) -> IndicatorUpdateSummary:
        """Write each reading; failures are logged per reading."""
        summary = IndicatorUpdateSummary(readings=readings)
        now = datetime.now(timezone.utc)

        for reading in readings:
            try:
                written = await self.indicator_repo.update_reading(
                    reading, now, insert_missing=self.insert_missing
                )
            except Exception as e:
                logger.error(
                    f"Error updating {reading.indicator_name} for {reading.pair}: {e}"
                )
                summary.persistence_errors.append(
                    f"{reading.pair}/{reading.indicator_name}: {e}"
                )
                continue

            if written:
                summary.saved += 1
                logger.info(f"Saved {reading.indicator_name} for {reading.pair}")
            else:
                summary.missing_rows += 1
                logger.warning(
                    f"No technical_indicators row for {reading.pair}/{reading.indicator_name}"
                )

        return summary
