"""Price fetcher: latest OHLCV snapshot per supported pair."""

import logging

import httpx

from app.clients import TwelveDataClient
from app.models import PriceSummary
from core.provider import parse_price_summaries

logger = logging.getLogger(__name__)


class PriceFetcher:
    """Fetch and decode the latest bar for a batch of pairs.

    Never raises for provider or network failures: an empty list means
    no prices are available this cycle.
    """

    def __init__(self, client: TwelveDataClient, interval: str = "1min"):
        self.client = client
        self.interval = interval

    async def fetch(self, pairs: list[str]) -> list[PriceSummary]:
        """Return one PriceSummary per pair the provider had usable data for."""
        if not pairs:
            return []

        try:
            data = await self.client.get_time_series(pairs, interval=self.interval)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching prices from TwelveData: {e}")
            return []

        prices = parse_price_summaries(data, pairs)
        logger.info(f"Fetched {len(prices)}/{len(pairs)} prices")
        return prices
