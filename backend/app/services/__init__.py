"""Business services."""

from app.services.price_fetcher import PriceFetcher
from app.services.signal_updater import SignalUpdater, SignalUpdateSummary
from app.services.indicator_updater import IndicatorUpdater, IndicatorUpdateSummary
from app.services.update_pipeline import (
    ACTION_BOTH,
    ACTION_INDICATORS,
    ACTION_SIGNALS,
    VALID_ACTIONS,
    ConfigurationError,
    IndicatorStepResult,
    NoDataError,
    SignalStepResult,
    StepOutcome,
    UpdatePipeline,
)

__all__ = [
    "PriceFetcher",
    "SignalUpdater",
    "SignalUpdateSummary",
    "IndicatorUpdater",
    "IndicatorUpdateSummary",
    "ACTION_BOTH",
    "ACTION_INDICATORS",
    "ACTION_SIGNALS",
    "VALID_ACTIONS",
    "ConfigurationError",
    "IndicatorStepResult",
    "NoDataError",
    "SignalStepResult",
    "StepOutcome",
    "UpdatePipeline",
]
