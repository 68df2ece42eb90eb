"""Tests for system health assessment."""

from datetime import datetime, timedelta, timezone

from core.health import SystemHealth, assess_health, parse_timestamp

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def ago(minutes: float) -> datetime:
    return NOW - timedelta(minutes=minutes)


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2024-01-01T12:00:00Z") == NOW

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-01-01T12:00:00") == NOW

    def test_missing_or_invalid(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None


class TestAssessHealth:
    """Tests for freshness thresholds."""

    def test_healthy(self):
        assert assess_health(ago(5), ago(20), now=NOW) == SystemHealth.HEALTHY

    def test_stale_prices_warn(self):
        assert assess_health(ago(15), ago(5), now=NOW) == SystemHealth.WARNING

    def test_stale_indicators_warn(self):
        assert assess_health(ago(1), ago(45), now=NOW) == SystemHealth.WARNING

    def test_very_stale_prices_error(self):
        assert assess_health(ago(31), ago(5), now=NOW) == SystemHealth.ERROR

    def test_very_stale_indicators_error(self):
        assert assess_health(ago(1), ago(61), now=NOW) == SystemHealth.ERROR

    def test_boundaries_are_not_stale(self):
        assert assess_health(ago(10), ago(30), now=NOW) == SystemHealth.HEALTHY

    def test_missing_timestamp_is_error(self):
        assert assess_health(None, ago(1), now=NOW) == SystemHealth.ERROR
