"""Decoding of TwelveData quote provider responses.

The provider answers a batch request in one of three shapes:

1. A flat object when a single symbol was requested::

       {"meta": {"symbol": "XAU/USD", ...}, "values": [{...}, ...], "status": "ok"}

2. A mapping from symbol to a per-symbol object of shape (1), each of which
   may independently carry ``"status": "error"``::

       {"XAU/USD": {"meta": ..., "values": [...]}, "EUR/USD": {"status": "error", ...}}

3. A top-level error::

       {"code": 401, "message": "...", "status": "error"}

Responses are decoded field by field; nothing is trusted to match a
static schema. ``values[0]`` is always the most recent bar.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from core.models import PriceSummary

logger = logging.getLogger(__name__)


@dataclass
class SingleSymbolResponse:
    """Flat response for a one-symbol request."""
    symbol: str
    values: list[dict[str, Any]]


@dataclass
class MultiSymbolResponse:
    """Symbol-keyed response; each entry is a raw per-symbol object."""
    results: dict[str, Any] = field(default_factory=dict)


@dataclass
class ErrorResponse:
    """Top-level failure (provider error, malformed or missing body)."""
    message: str


ProviderResponse = Union[SingleSymbolResponse, MultiSymbolResponse, ErrorResponse]


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a provider number (usually a string) into a Decimal.

    Returns None for missing, non-numeric or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def parse_float(value: Any) -> float | None:
    """Parse a provider number into a float, None if unusable."""
    result = parse_decimal(value)
    return float(result) if result is not None else None


def _is_error(obj: dict[str, Any]) -> bool:
    return obj.get("status") == "error"


def decode_response(data: Any, requested: list[str]) -> ProviderResponse:
    """Classify a raw provider payload into one of the response shapes."""
    if not isinstance(data, dict):
        return ErrorResponse(message=f"unexpected payload type {type(data).__name__}")

    if _is_error(data):
        return ErrorResponse(message=str(data.get("message", "unknown provider error")))

    if "meta" in data and "values" in data:
        meta = data.get("meta")
        symbol = meta.get("symbol") if isinstance(meta, dict) else None
        if not symbol and requested:
            symbol = requested[0]
        values = data.get("values")
        return SingleSymbolResponse(
            symbol=symbol or "",
            values=values if isinstance(values, list) else [],
        )

    return MultiSymbolResponse(results=data)


def latest_by_symbol(data: Any, requested: list[str]) -> dict[str, dict[str, Any]]:
    """Return the most recent bar for every symbol with usable data.

    Symbols whose entry is an error or has no values are logged and left out.
    """
    response = decode_response(data, requested)

    if isinstance(response, ErrorResponse):
        logger.error(f"Provider error: {response.message}")
        return {}

    if isinstance(response, SingleSymbolResponse):
        entries: dict[str, Any] = {
            response.symbol: {"values": response.values}
        }
    else:
        entries = response.results

    latest: dict[str, dict[str, Any]] = {}
    for symbol, result in entries.items():
        if not isinstance(result, dict):
            logger.warning(f"Malformed entry for {symbol}, skipping")
            continue
        if _is_error(result):
            logger.error(f"API error for {symbol}: {result.get('message')}")
            continue
        values = result.get("values")
        if not isinstance(values, list) or not values or not isinstance(values[0], dict):
            logger.warning(f"No data returned for {symbol}")
            continue
        latest[symbol] = values[0]

    return latest


def parse_price_summaries(data: Any, requested: list[str]) -> list[PriceSummary]:
    """Turn a ``time_series`` payload into one PriceSummary per usable pair."""
    summaries = []
    for symbol, bar in latest_by_symbol(data, requested).items():
        open_price = parse_decimal(bar.get("open"))
        close_price = parse_decimal(bar.get("close"))
        high_price = parse_decimal(bar.get("high"))
        low_price = parse_decimal(bar.get("low"))

        if None in (open_price, close_price, high_price, low_price):
            logger.warning(f"Unparsable OHLC for {symbol}: {bar}")
            continue

        volume = bar.get("volume")
        summaries.append(
            PriceSummary.from_bar(
                pair=symbol,
                open_price=open_price,
                high_price=high_price,
                low_price=low_price,
                close_price=close_price,
                volume=str(volume) if volume not in (None, "") else "0",
            )
        )
        logger.info(f"Fetched {symbol}: {close_price}")

    return summaries
