"""Data storage layer."""

from app.storage.database import Database, close_database, get_database, init_database
from app.storage.signal_repo import SignalRepository
from app.storage.market_repo import MarketRepository
from app.storage.indicator_repo import IndicatorRepository
from app.storage.config_repo import (
    KEY_LAST_INDICATOR_UPDATE,
    KEY_LAST_PRICE_UPDATE,
    KEY_SUPPORTED_PAIRS,
    SystemConfigRepository,
)

__all__ = [
    "Database",
    "close_database",
    "get_database",
    "init_database",
    "SignalRepository",
    "MarketRepository",
    "IndicatorRepository",
    "SystemConfigRepository",
    "KEY_LAST_INDICATOR_UPDATE",
    "KEY_LAST_PRICE_UPDATE",
    "KEY_SUPPORTED_PAIRS",
]
