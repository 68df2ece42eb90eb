"""Technical indicator classification (pure logic, no I/O)."""

from core.indicators.classifier import (
    INDICATOR_NAMES,
    Classification,
    calculate_atr,
    calculate_indicators,
    calculate_macd,
    calculate_rsi,
    classify_atr,
    classify_macd,
    classify_rsi,
    format_atr,
    format_macd,
    format_rsi,
)

__all__ = [
    "INDICATOR_NAMES",
    "Classification",
    "calculate_atr",
    "calculate_indicators",
    "calculate_macd",
    "calculate_rsi",
    "classify_atr",
    "classify_macd",
    "classify_rsi",
    "format_atr",
    "format_macd",
    "format_rsi",
]
