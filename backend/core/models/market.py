"""Market snapshot and indicator reading models."""

from decimal import Decimal
from pydantic import BaseModel, ConfigDict


class PriceSummary(BaseModel):
    """Latest OHLCV snapshot for a pair.

    Overwritten every fetch cycle; no history is kept.
    """

    model_config = ConfigDict(frozen=True)

    pair: str
    current_price: Decimal
    high_price: Decimal
    low_price: Decimal
    open_price: Decimal
    volume: str = "0"
    change_amount: Decimal
    change_percent: Decimal | None = None  # None when open_price is zero

    @classmethod
    def from_bar(
        cls,
        pair: str,
        open_price: Decimal,
        high_price: Decimal,
        low_price: Decimal,
        close_price: Decimal,
        volume: str | None = None,
    ) -> "PriceSummary":
        """Build a summary from a single OHLC bar, deriving the change fields."""
        change = close_price - open_price
        change_percent = change / open_price * 100 if open_price != 0 else None
        return cls(
            pair=pair,
            current_price=close_price,
            high_price=high_price,
            low_price=low_price,
            open_price=open_price,
            volume=volume or "0",
            change_amount=change,
            change_percent=change_percent,
        )


class IndicatorReading(BaseModel):
    """Current value of one indicator for one pair."""

    model_config = ConfigDict(frozen=True)

    pair: str
    indicator_name: str  # RSI | MACD | ATR
    value: str
    status: str
    color: str  # Display hint only
    timeframe: str
