"""Update pipeline: one trigger invocation from config load to persistence.

Sequence per invocation::

    load RuntimeConfig
    signals:    fetch prices -> upsert price_summary/market_data
                -> evaluate open signals -> touch last_price_update
    indicators: fetch RSI/MACD/ATR (concurrently) -> classify
                -> update technical_indicators -> touch last_indicator_update

A configuration error fails the whole invocation. A step with no usable
provider data fails on its own; sibling steps still run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from app.clients import TwelveDataClient
from app.config import Settings, get_settings
from app.models import EvaluatorConfig, PriceSummary, RuntimeConfig
from app.services.indicator_updater import IndicatorUpdater, IndicatorUpdateSummary
from app.services.price_fetcher import PriceFetcher
from app.services.signal_updater import SignalUpdater, SignalUpdateSummary
from app.storage import (
    KEY_LAST_INDICATOR_UPDATE,
    KEY_LAST_PRICE_UPDATE,
    KEY_SUPPORTED_PAIRS,
    IndicatorRepository,
    MarketRepository,
    SignalRepository,
    SystemConfigRepository,
)

logger = logging.getLogger(__name__)

ACTION_SIGNALS = "signals"
ACTION_INDICATORS = "indicators"
ACTION_BOTH = "both"
VALID_ACTIONS = (ACTION_SIGNALS, ACTION_INDICATORS, ACTION_BOTH)

ClientFactory = Callable[[RuntimeConfig], TwelveDataClient]


class ConfigurationError(RuntimeError):
    """Required configuration (API key, supported pairs) is missing."""


class NoDataError(RuntimeError):
    """A step produced no usable data from the provider."""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _price_to_dict(price: PriceSummary) -> dict[str, Any]:
    return {
        "pair": price.pair,
        "current_price": float(price.current_price),
        "high_price": float(price.high_price),
        "low_price": float(price.low_price),
        "open_price": float(price.open_price),
        "volume": price.volume,
        "change_amount": float(price.change_amount),
        "change_percent": (
            float(price.change_percent) if price.change_percent is not None else None
        ),
    }


@dataclass
class SignalStepResult:
    """Result of the signals step."""
    prices: list[PriceSummary]
    summary: SignalUpdateSummary
    persistence_errors: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Signals updated successfully",
            "prices_updated": len(self.prices),
            "timestamp": self.timestamp,
            "price_data": [_price_to_dict(p) for p in self.prices],
            "signals_evaluated": self.summary.evaluated,
            "signals_updated": self.summary.updated,
            "persistence_errors": self.persistence_errors + self.summary.persistence_errors,
        }


@dataclass
class IndicatorStepResult:
    """Result of the indicators step."""
    summary: IndicatorUpdateSummary
    persistence_errors: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Technical indicators updated successfully",
            "indicators_updated": len(self.summary.readings),
            "timestamp": self.timestamp,
            "indicators": [r.model_dump() for r in self.summary.readings],
            "persistence_errors": self.persistence_errors + self.summary.persistence_errors,
        }


@dataclass
class StepOutcome:
    """One entry of a manual trigger result."""
    type: str
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type, "success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        return result


class UpdatePipeline:
    """Sequence fetcher, persistence and evaluator for one invocation."""

    def __init__(
        self,
        settings: Settings | None = None,
        config_repo: SystemConfigRepository | None = None,
        signal_repo: SignalRepository | None = None,
        market_repo: MarketRepository | None = None,
        indicator_repo: IndicatorRepository | None = None,
        client_factory: ClientFactory | None = None,
        evaluator_config: EvaluatorConfig | None = None,
    ):
        self.settings = settings or get_settings()
        self.config_repo = config_repo or SystemConfigRepository()
        self.signal_repo = signal_repo or SignalRepository()
        self.market_repo = market_repo or MarketRepository()
        self.indicator_repo = indicator_repo or IndicatorRepository()
        self.client_factory = client_factory or self._default_client
        self.evaluator_config = evaluator_config or EvaluatorConfig()

    def _default_client(self, config: RuntimeConfig) -> TwelveDataClient:
        return TwelveDataClient(
            api_key=config.api_key,
            base_url=self.settings.twelvedata_base_url,
            timeout=self.settings.http_timeout,
        )

    async def load_config(self) -> RuntimeConfig:
        """Read the API key and supported pairs from system_config.

        Raises:
            ConfigurationError: If the config cannot be read or is incomplete
        """
        api_key_name = self.settings.twelvedata_config_key
        try:
            values = await self.config_repo.get_values([api_key_name, KEY_SUPPORTED_PAIRS])
        except Exception as e:
            raise ConfigurationError(f"Failed to get configuration: {e}") from e

        api_key = (values.get(api_key_name) or "").strip()
        if not api_key:
            raise ConfigurationError("TwelveData API key not configured")

        pairs = values.get(KEY_SUPPORTED_PAIRS) or ""
        if not any(p.strip() for p in pairs.split(",")):
            raise ConfigurationError("No supported pairs configured")
        return RuntimeConfig.from_config_values(api_key, pairs)

    async def _touch(self, key: str, errors: list[str]) -> None:
        try:
            await self.config_repo.touch(key)
        except Exception as e:
            logger.error(f"Error updating {key}: {e}")
            errors.append(f"{key}: {e}")

    async def update_signals(self, config: RuntimeConfig) -> SignalStepResult:
        """Fetch prices, store them and run the signal evaluator.

        Raises:
            NoDataError: If the provider returned no usable prices
        """
        pairs = list(config.supported_pairs)
        logger.info(f"Fetching prices for pairs: {', '.join(pairs)}")

        client = self.client_factory(config)
        try:
            prices = await PriceFetcher(client, self.settings.price_interval).fetch(pairs)
        finally:
            await client.close()

        if not prices:
            raise NoDataError("No price data received from TwelveData")

        errors: list[str] = []
        now = datetime.now(timezone.utc)
        for price in prices:
            try:
                await self.market_repo.upsert_price_summary(price, now)
            except Exception as e:
                logger.error(f"Error updating price for {price.pair}: {e}")
                errors.append(f"price_summary/{price.pair}: {e}")
            try:
                await self.market_repo.upsert_market_data(price, now)
            except Exception as e:
                logger.error(f"Error updating market_data for {price.pair}: {e}")
                errors.append(f"market_data/{price.pair}: {e}")

        updater = SignalUpdater(
            signal_repo=self.signal_repo,
            config=self.evaluator_config,
            optimistic_lock=self.settings.signal_optimistic_lock,
        )
        summary = await updater.process_prices(prices)

        await self._touch(KEY_LAST_PRICE_UPDATE, errors)

        logger.info(
            f"Signal update completed: {len(prices)} prices, "
            f"{summary.updated} signals updated, {summary.closed} closed"
        )
        return SignalStepResult(prices=prices, summary=summary, persistence_errors=errors)

    async def update_indicators(self, config: RuntimeConfig) -> IndicatorStepResult:
        """Fetch indicator batches, classify and store the readings.

        Raises:
            NoDataError: If no reading could be produced
        """
        pairs = list(config.supported_pairs)
        logger.info("Starting technical indicators update")

        client = self.client_factory(config)
        updater = IndicatorUpdater(
            client=client,
            indicator_repo=self.indicator_repo,
            market_repo=self.market_repo,
            interval=self.settings.indicator_interval,
            timeframe=self.settings.indicator_timeframe,
            insert_missing=self.settings.seed_missing_indicators,
        )
        try:
            readings = await updater.calculate(pairs)
        finally:
            await client.close()

        if not readings:
            raise NoDataError("No indicator data was successfully fetched")

        summary = await updater.save(readings)

        errors: list[str] = []
        await self._touch(KEY_LAST_INDICATOR_UPDATE, errors)

        logger.info(f"Indicator update completed: {summary.saved}/{len(readings)} saved")
        return IndicatorStepResult(summary=summary, persistence_errors=errors)

    async def run(self, action: str = ACTION_BOTH) -> list[StepOutcome]:
        """Run the steps selected by ``action`` with one shared config.

        Raises:
            ValueError: If ``action`` is unknown
            ConfigurationError: If the config is missing or incomplete
        """
        if action not in VALID_ACTIONS:
            raise ValueError(f"action must be one of {', '.join(VALID_ACTIONS)}")

        config = await self.load_config()
        outcomes: list[StepOutcome] = []

        if action in (ACTION_SIGNALS, ACTION_BOTH):
            try:
                result = await self.update_signals(config)
                outcomes.append(StepOutcome(type=ACTION_SIGNALS, success=True, data=result.to_dict()))
            except Exception as e:
                logger.error(f"Signals update failed: {e}")
                outcomes.append(StepOutcome(type=ACTION_SIGNALS, success=False, error=str(e)))

        if action in (ACTION_INDICATORS, ACTION_BOTH):
            try:
                result = await self.update_indicators(config)
                outcomes.append(StepOutcome(type=ACTION_INDICATORS, success=True, data=result.to_dict()))
            except Exception as e:
                logger.error(f"Indicators update failed: {e}")
                outcomes.append(StepOutcome(type=ACTION_INDICATORS, success=False, error=str(e)))

        return outcomes
