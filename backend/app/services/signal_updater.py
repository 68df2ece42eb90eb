"""Signal updater: runs the lifecycle evaluator over all open signals.

Loads pending/active signals, evaluates each against the freshly fetched
prices and writes back whatever changed. A failed write for one signal is
logged and skipped; the rest of the batch still runs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.models import EvaluatorConfig, PriceSummary, SignalStatus
from app.storage import SignalRepository
from core.signal_evaluator import build_price_index, evaluate_signal

logger = logging.getLogger(__name__)


@dataclass
class SignalUpdateSummary:
    """Counts from one evaluator pass."""
    evaluated: int = 0
    updated: int = 0
    activated: int = 0
    closed: int = 0
    no_price: int = 0
    conflicts: int = 0
    persistence_errors: list[str] = field(default_factory=list)


class SignalUpdater:
    """
    Evaluate open signals against current prices and persist the results.

    Signals are processed sequentially. Without optimistic locking,
    concurrent invocations on the same rows are last-write-wins.
    """

    def __init__(
        self,
        signal_repo: SignalRepository | None = None,
        config: EvaluatorConfig | None = None,
        optimistic_lock: bool = False,
    ):
        """
        Args:
            signal_repo: Optional signal repository (for testing)
            config: Evaluator parameters
            optimistic_lock: Only write rows whose updated_at is unchanged since load
        """
        self.signal_repo = signal_repo or SignalRepository()
        self.config = config or EvaluatorConfig()
        self.optimistic_lock = optimistic_lock

    async def process_prices(self, prices: list[PriceSummary]) -> SignalUpdateSummary:
        """Evaluate every open signal that has a matching price."""
        summary = SignalUpdateSummary()

        try:
            signals = await self.signal_repo.get_open()
        except Exception as e:
            logger.error(f"Error fetching signals: {e}")
            summary.persistence_errors.append(f"load: {e}")
            return summary

        if not signals:
            logger.info("No active signals to update")
            return summary

        logger.info(f"Processing {len(signals)} active signals")
        price_index = build_price_index(prices)

        for signal in signals:
            price = price_index.get(signal.pair.upper())
            if price is None:
                logger.info(f"No price data for signal {signal.id} ({signal.pair})")
                summary.no_price += 1
                continue

            evaluation = evaluate_signal(signal, price, self.config)
            if evaluation is None:
                continue
            summary.evaluated += 1

            if not evaluation.needs_persist:
                continue

            try:
                written = await self.signal_repo.update_state(
                    signal_id=signal.id,
                    current_price=evaluation.current_price,
                    status=evaluation.status,
                    tp_hit=evaluation.tp_hit,
                    sl_hit=evaluation.sl_hit,
                    pnl=evaluation.pnl,
                    updated_at=datetime.now(timezone.utc),
                    expected_updated_at=signal.updated_at if self.optimistic_lock else None,
                )
            except Exception as e:
                logger.error(f"Error updating signal {signal.id}: {e}")
                summary.persistence_errors.append(f"{signal.id}: {e}")
                continue

            if not written:
                logger.warning(f"Signal {signal.id} was modified concurrently, skipped")
                summary.conflicts += 1
                continue

            summary.updated += 1
            if evaluation.status_changed:
                logger.info(
                    f"Updated signal {signal.id}: "
                    f"{evaluation.previous_status.value} -> {evaluation.status.value}"
                )
                if evaluation.status == SignalStatus.ACTIVE:
                    summary.activated += 1
                elif evaluation.status == SignalStatus.CLOSED:
                    summary.closed += 1

        return summary
