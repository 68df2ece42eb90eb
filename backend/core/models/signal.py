"""Signal data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, field_validator


class SignalType(str, Enum):
    """Trade direction of a signal."""

    BUY = "BUY"
    SELL = "SELL"


class SignalStatus(str, Enum):
    """Signal lifecycle status."""

    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"  # Terminal


OPEN_STATUSES = (SignalStatus.PENDING, SignalStatus.ACTIVE)


class Signal(BaseModel):
    """Trading signal record.

    Created externally in ``pending`` or ``active`` status and mutated only
    by the signal evaluator. Once ``closed`` it is never touched again.
    """

    id: str
    pair: str
    type: SignalType
    entry_price: Decimal
    take_profit_levels: list[Decimal]  # Ascending for BUY, descending for SELL
    stop_loss: Decimal
    status: SignalStatus = SignalStatus.PENDING
    tp_hit: bool = False
    sl_hit: bool = False
    current_price: Decimal | None = None  # Last observed price
    pnl: Decimal = Decimal("0")
    updated_at: datetime | None = None

    @field_validator("take_profit_levels")
    @classmethod
    def _require_levels(cls, levels: list[Decimal]) -> list[Decimal]:
        if not levels:
            raise ValueError("take_profit_levels must not be empty")
        return levels

    @property
    def is_terminal(self) -> bool:
        """Whether the signal has reached its final state."""
        return self.status == SignalStatus.CLOSED
