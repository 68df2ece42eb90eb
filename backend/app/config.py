"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Per-invocation values (provider API key, supported pairs) live in the
    system_config table, not here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql://localhost/signals"

    # Shared secret required by POST /update-signals (?key=...)
    edge_secret_key: str = ""

    # TwelveData quote provider
    twelvedata_base_url: str = "https://api.twelvedata.com"
    twelvedata_config_key: str = "api_key_twelvedata"
    price_interval: str = "1min"
    indicator_interval: str = "15min"
    indicator_timeframe: str = "15M"
    http_timeout: float = 30.0

    # Conditional signal updates keyed on updated_at (off = last write wins)
    signal_optimistic_lock: bool = False

    # Insert indicator rows that were not pre-provisioned (off = update only)
    seed_missing_indicators: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
