"""Indicator classification and formatting.

Turns the latest RSI, MACD and ATR values reported by the provider into
IndicatorReading records with a status bucket and a display color.
Pure functions, no I/O.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from core.models import IndicatorReading
from core.provider import latest_by_symbol, parse_float

logger = logging.getLogger(__name__)

# Display colors
COLOR_RED = "#FF4757"
COLOR_GREEN = "#00C897"
COLOR_GREY = "#888888"
COLOR_ORANGE = "#FFA500"

# Classification thresholds
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
MACD_BUY = 0.5
MACD_SELL = -0.5
ATR_HIGH_VOLATILITY_PCT = 2.0
ATR_LOW_VOLATILITY_PCT = 0.5

INDICATOR_NAMES = ("RSI", "MACD", "ATR")


@dataclass(frozen=True)
class Classification:
    """Status bucket and display color for an indicator value."""
    status: str
    color: str


def classify_rsi(rsi: float) -> Classification:
    if rsi > RSI_OVERBOUGHT:
        return Classification("Overbought", COLOR_RED)
    if rsi < RSI_OVERSOLD:
        return Classification("Oversold", COLOR_GREEN)
    return Classification("Neutral", COLOR_GREY)


def classify_macd(macd: float) -> Classification:
    if macd > MACD_BUY:
        return Classification("Buy", COLOR_GREEN)
    if macd < MACD_SELL:
        return Classification("Sell", COLOR_RED)
    return Classification("Neutral", COLOR_GREY)


def classify_atr(atr: float, price: float) -> Classification:
    """Classify ATR as a percentage of the current price."""
    volatility_percent = (atr / price) * 100
    if volatility_percent > ATR_HIGH_VOLATILITY_PCT:
        return Classification("High Volatility", COLOR_RED)
    if volatility_percent < ATR_LOW_VOLATILITY_PCT:
        return Classification("Low Volatility", COLOR_GREY)
    return Classification("Normal Volatility", COLOR_ORANGE)


def format_fixed(value: float, places: int) -> str:
    """Fixed-point format, rounding half away from zero on the exact binary value."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_rsi(rsi: float) -> str:
    return format_fixed(rsi, 1)


def format_macd(macd: float) -> str:
    # Only a Buy reading carries an explicit sign
    formatted = format_fixed(macd, 2)
    return f"+{formatted}" if macd > MACD_BUY else formatted


def format_atr(atr: float) -> str:
    return format_fixed(atr, 4)


def _latest_values(raw: Any, pairs: list[str], field: str) -> dict[str, float]:
    """Extract ``values[0][field]`` per pair from a raw indicator batch."""
    if raw is None:
        return {}
    values = {}
    for symbol, bar in latest_by_symbol(raw, pairs).items():
        parsed = parse_float(bar.get(field))
        if parsed is None:
            logger.warning(f"Unparsable {field.upper()} value for {symbol}: {bar.get(field)!r}")
            continue
        values[symbol] = parsed
    return values


def calculate_rsi(raw: Any, pairs: list[str], timeframe: str) -> list[IndicatorReading]:
    """Build RSI readings for every pair present in the batch."""
    values = _latest_values(raw, pairs, "rsi")
    readings = []
    for pair in pairs:
        if pair not in values:
            continue
        rsi = values[pair]
        bucket = classify_rsi(rsi)
        readings.append(
            IndicatorReading(
                pair=pair,
                indicator_name="RSI",
                value=format_rsi(rsi),
                status=bucket.status,
                color=bucket.color,
                timeframe=timeframe,
            )
        )
    return readings


def calculate_macd(raw: Any, pairs: list[str], timeframe: str) -> list[IndicatorReading]:
    """Build MACD readings for every pair present in the batch."""
    values = _latest_values(raw, pairs, "macd")
    readings = []
    for pair in pairs:
        if pair not in values:
            continue
        macd = values[pair]
        bucket = classify_macd(macd)
        readings.append(
            IndicatorReading(
                pair=pair,
                indicator_name="MACD",
                value=format_macd(macd),
                status=bucket.status,
                color=bucket.color,
                timeframe=timeframe,
            )
        )
    return readings


def calculate_atr(
    raw: Any,
    pairs: list[str],
    prices: Mapping[str, Decimal | None],
    timeframe: str,
) -> list[IndicatorReading]:
    """Build ATR readings; pairs without a known non-zero price are skipped."""
    values = _latest_values(raw, pairs, "atr")
    readings = []
    for pair in pairs:
        if pair not in values:
            continue
        price = prices.get(pair)
        if not price:
            logger.warning(f"No current price for {pair}, skipping ATR")
            continue
        atr = values[pair]
        bucket = classify_atr(atr, float(price))
        readings.append(
            IndicatorReading(
                pair=pair,
                indicator_name="ATR",
                value=format_atr(atr),
                status=bucket.status,
                color=bucket.color,
                timeframe=timeframe,
            )
        )
    return readings


def calculate_indicators(
    rsi_raw: Any,
    macd_raw: Any,
    atr_raw: Any,
    pairs: list[str],
    prices: Mapping[str, Decimal | None],
    timeframe: str = "15M",
) -> list[IndicatorReading]:
    """Compute all readings from the three raw batches.

    A missing batch (``None``) or a missing pair in one family never
    affects the other families. Output order is ATR, RSI, MACD.
    """
    return [
        *calculate_atr(atr_raw, pairs, prices, timeframe),
        *calculate_rsi(rsi_raw, pairs, timeframe),
        *calculate_macd(macd_raw, pairs, timeframe),
    ]
