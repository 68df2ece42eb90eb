"""TwelveData REST API client for quotes and technical indicators."""

import logging
from typing import Any

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)


class TwelveDataClient:
    """TwelveData REST API client.

    Batch endpoints take a comma separated ``symbol`` list. Raw JSON is
    returned; decoding lives in core.provider.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key
        self.base_url = base_url or settings.twelvedata_base_url
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TwelveDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """Make a GET request and return the decoded JSON body."""
        client = await self._get_client()
        response = await client.get(endpoint, params={"apikey": self.api_key, **params})
        response.raise_for_status()
        return response.json()

    async def get_time_series(self, pairs: list[str], interval: str = "1min") -> Any:
        """Fetch the latest OHLCV bars for a batch of symbols.

        Args:
            pairs: Provider symbols (e.g., "XAU/USD")
            interval: Bar interval

        Returns:
            Raw provider payload
        """
        return await self._request(
            "/time_series",
            {"interval": interval, "symbol": ",".join(pairs)},
        )

    async def get_indicator(
        self, indicator: str, pairs: list[str], interval: str = "15min"
    ) -> Any:
        """Fetch one indicator (rsi, macd, atr) for a batch of symbols.

        Returns None instead of raising when the request fails, so sibling
        concurrent fetches are unaffected.
        """
        name = indicator.lower()
        try:
            logger.info(f"Fetching {name.upper()} for {','.join(pairs)}")
            return await self._request(
                f"/{name}",
                {"interval": interval, "symbol": ",".join(pairs)},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching {name.upper()}: {e}")
            return None
