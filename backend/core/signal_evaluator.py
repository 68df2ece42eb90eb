"""Signal lifecycle evaluation.

Decides, for a single price tick, whether a signal activates, closes on
take-profit or closes on stop-loss, and computes its P&L.

This module is pure business logic with no I/O dependencies. Loading
signals and writing results back is done by app.services.signal_updater.

Lifecycle::

    pending --(price within entry tolerance)--> active
    pending/active --(TP level crossed)--> closed (tp_hit)
    pending/active --(stop-loss crossed)--> closed (sl_hit)

Take-profit is checked before stop-loss, so TP wins when one tick
satisfies both. TP/SL checks are not gated on the signal being active.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from core.models import (
    EvaluatorConfig,
    OPEN_STATUSES,
    PriceSummary,
    Signal,
    SignalStatus,
    SignalType,
)

logger = logging.getLogger(__name__)

# Scale of the stored price columns (Numeric(20, 8))
PRICE_QUANTUM = Decimal("0.00000001")


@dataclass
class SignalEvaluation:
    """Outcome of evaluating one signal against one price."""
    signal_id: str
    previous_status: SignalStatus
    status: SignalStatus
    tp_hit: bool
    sl_hit: bool
    pnl: Decimal
    current_price: Decimal
    status_changed: bool
    price_changed: bool

    @property
    def needs_persist(self) -> bool:
        """A state change or a fresh price must be written back."""
        return self.status_changed or self.price_changed

    @property
    def closed(self) -> bool:
        return self.status == SignalStatus.CLOSED and self.status_changed


def build_price_index(prices: Iterable[PriceSummary]) -> dict[str, Decimal]:
    """Map upper-cased pair symbol to current price."""
    return {p.pair.upper(): p.current_price for p in prices}


def _tp_crossed(signal_type: SignalType, price: Decimal, level: Decimal) -> bool:
    if signal_type == SignalType.BUY:
        return price >= level
    return price <= level


def _sl_crossed(signal_type: SignalType, price: Decimal, stop_loss: Decimal) -> bool:
    if signal_type == SignalType.BUY:
        return price <= stop_loss
    return price >= stop_loss


def calculate_pnl(
    signal_type: SignalType,
    entry_price: Decimal,
    price: Decimal,
    multiplier: Decimal = Decimal("100"),
) -> Decimal:
    """Simplified P&L: favorable price distance scaled by ``multiplier``."""
    if signal_type == SignalType.BUY:
        return (price - entry_price) * multiplier
    return (entry_price - price) * multiplier


def within_entry_tolerance(
    entry_price: Decimal, price: Decimal, tolerance: Decimal = Decimal("0.001")
) -> bool:
    """Whether ``price`` is within ``tolerance`` (ratio) of ``entry_price``."""
    return abs(price - entry_price) <= entry_price * tolerance


def price_differs(stored: Decimal | None, price: Decimal) -> bool:
    """Whether ``price`` differs from the stored price at storage precision."""
    if stored is None:
        return True
    # PostgreSQL numeric rounds half away from zero
    return (
        price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
        != stored.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
    )


def evaluate_signal(
    signal: Signal,
    price: Decimal,
    config: EvaluatorConfig | None = None,
) -> SignalEvaluation | None:
    """Evaluate a signal against the current price.

    Returns None for closed signals, which are never mutated. The input
    signal is left untouched; the caller applies the returned state.
    """
    if signal.status not in OPEN_STATUSES:
        return None

    config = config or EvaluatorConfig()
    status = signal.status
    tp_hit = signal.tp_hit
    sl_hit = signal.sl_hit
    pnl = signal.pnl if signal.pnl is not None else Decimal("0")

    # Take profit: first level crossed in stored order wins
    for level in signal.take_profit_levels:
        if not tp_hit and _tp_crossed(signal.type, price, level):
            tp_hit = True
            status = SignalStatus.CLOSED
            pnl = calculate_pnl(signal.type, signal.entry_price, price, config.pnl_multiplier)
            logger.info(
                f"{signal.type.value} signal {signal.id} hit TP {level} at {price}"
            )
            break

    # Stop loss: skipped when TP already fired
    if not sl_hit and not tp_hit and _sl_crossed(signal.type, price, signal.stop_loss):
        sl_hit = True
        status = SignalStatus.CLOSED
        pnl = calculate_pnl(signal.type, signal.entry_price, price, config.pnl_multiplier)
        logger.info(f"{signal.type.value} signal {signal.id} hit SL at {price}")

    # Activation only applies when the signal did not close in this pass
    if (
        signal.status == SignalStatus.PENDING
        and status != SignalStatus.CLOSED
        and within_entry_tolerance(signal.entry_price, price, config.entry_tolerance)
    ):
        status = SignalStatus.ACTIVE
        logger.info(f"Signal {signal.id} activated at {price}")

    return SignalEvaluation(
        signal_id=signal.id,
        previous_status=signal.status,
        status=status,
        tp_hit=tp_hit,
        sl_hit=sl_hit,
        pnl=pnl,
        current_price=price,
        status_changed=status != signal.status,
        price_changed=price_differs(signal.current_price, price),
    )


def apply_evaluation(signal: Signal, evaluation: SignalEvaluation) -> Signal:
    """Return a copy of ``signal`` carrying the evaluated state."""
    return signal.model_copy(
        update={
            "status": evaluation.status,
            "tp_hit": evaluation.tp_hit,
            "sl_hit": evaluation.sl_hit,
            "pnl": evaluation.pnl,
            "current_price": evaluation.current_price,
        }
    )
