"""System health derived from the age of the last update timestamps."""

from datetime import datetime, timezone
from enum import Enum


class SystemHealth(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


# Age limits in minutes: (warning, error)
PRICE_AGE_LIMITS = (10, 30)
INDICATOR_AGE_LIMITS = (30, 60)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 config timestamp, None if missing or invalid."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _age_minutes(timestamp: datetime | None, now: datetime) -> float:
    if timestamp is None:
        return float("inf")
    return (now - timestamp).total_seconds() / 60


def assess_health(
    last_price_update: datetime | None,
    last_indicator_update: datetime | None,
    now: datetime | None = None,
) -> SystemHealth:
    """Classify freshness of the price and indicator pipelines.

    Missing timestamps count as infinitely old.
    """
    now = now or datetime.now(timezone.utc)
    price_age = _age_minutes(last_price_update, now)
    indicator_age = _age_minutes(last_indicator_update, now)

    if price_age > PRICE_AGE_LIMITS[1] or indicator_age > INDICATOR_AGE_LIMITS[1]:
        return SystemHealth.ERROR
    if price_age > PRICE_AGE_LIMITS[0] or indicator_age > INDICATOR_AGE_LIMITS[0]:
        return SystemHealth.WARNING
    return SystemHealth.HEALTHY
