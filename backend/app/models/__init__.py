"""Data models."""

from core.models import (
    OPEN_STATUSES,
    EvaluatorConfig,
    IndicatorReading,
    PriceSummary,
    RuntimeConfig,
    Signal,
    SignalStatus,
    SignalType,
)

__all__ = [
    "OPEN_STATUSES",
    "EvaluatorConfig",
    "IndicatorReading",
    "PriceSummary",
    "RuntimeConfig",
    "Signal",
    "SignalStatus",
    "SignalType",
]
