"""Domain models shared by the evaluator, the indicator calculator and the API."""

from core.models.config import EvaluatorConfig, RuntimeConfig
from core.models.market import IndicatorReading, PriceSummary
from core.models.signal import OPEN_STATUSES, Signal, SignalStatus, SignalType

__all__ = [
    "EvaluatorConfig",
    "RuntimeConfig",
    "IndicatorReading",
    "PriceSummary",
    "OPEN_STATUSES",
    "Signal",
    "SignalStatus",
    "SignalType",
]
