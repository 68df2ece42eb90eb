"""Runtime and evaluator configuration models."""

from __future__ import annotations

from decimal import Decimal
from pydantic import BaseModel, ConfigDict, field_validator


class EvaluatorConfig(BaseModel):
    """Signal evaluator parameters."""

    model_config = ConfigDict(frozen=True)

    # Tolerance for price reaching the entry level (as ratio)
    entry_tolerance: Decimal = Decimal("0.001")  # 0.1%

    # Simplified P&L scale applied to the raw price difference
    pnl_multiplier: Decimal = Decimal("100")


class RuntimeConfig(BaseModel):
    """Per-invocation configuration read from the system_config table.

    Built once at the start of each invocation and passed explicitly to
    the fetcher, the indicator step and the evaluator.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str
    supported_pairs: tuple[str, ...]

    @field_validator("api_key")
    @classmethod
    def _require_api_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("api_key must not be empty")
        return value.strip()

    @field_validator("supported_pairs")
    @classmethod
    def _require_pairs(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("supported_pairs must not be empty")
        return value

    @classmethod
    def from_config_values(
        cls, api_key: str | None, supported_pairs: str | None
    ) -> RuntimeConfig:
        """Build from raw config values (pairs as a comma separated string)."""
        pairs = tuple(
            p.strip() for p in (supported_pairs or "").split(",") if p.strip()
        )
        return cls(api_key=api_key or "", supported_pairs=pairs)
