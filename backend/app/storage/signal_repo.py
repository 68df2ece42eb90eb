"""Signal data repository."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, update

from app.models import OPEN_STATUSES, Signal, SignalStatus, SignalType
from app.storage.database import SignalTable, get_database

logger = logging.getLogger(__name__)


class SignalRepository:
    """Repository for signal data operations."""

    async def get_open(self) -> list[Signal]:
        """Get all non-terminal (pending or active) signals."""
        async with get_database().session() as session:
            stmt = (
                select(SignalTable)
                .where(SignalTable.status.in_([s.value for s in OPEN_STATUSES]))
                .order_by(SignalTable.created_at.asc())
            )
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return self._rows_to_signals(rows)

    async def get_recent(
        self,
        limit: int = 100,
        status: SignalStatus | None = None,
        days: int | None = None,
    ) -> list[Signal]:
        """Get the most recently updated signals.

        Args:
            limit: Maximum number of signals
            status: Only signals in this status
            days: Only signals created within the last ``days`` days
        """
        async with get_database().session() as session:
            stmt = select(SignalTable)
            if status:
                stmt = stmt.where(SignalTable.status == status.value)
            if days is not None:
                since = datetime.now(timezone.utc) - timedelta(days=days)
                stmt = stmt.where(SignalTable.created_at >= since)
            stmt = stmt.order_by(SignalTable.updated_at.desc()).limit(limit)

            result = await session.execute(stmt)
            rows = result.scalars().all()

        return self._rows_to_signals(rows)

    async def get_by_id(self, signal_id: str) -> Signal | None:
        """Get a signal by ID."""
        async with get_database().session() as session:
            stmt = select(SignalTable).where(SignalTable.id == signal_id)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

            if row is None:
                return None
            return self._row_to_signal(row)

    async def update_state(
        self,
        signal_id: str,
        current_price: Decimal,
        status: SignalStatus,
        tp_hit: bool,
        sl_hit: bool,
        pnl: Decimal,
        updated_at: datetime,
        expected_updated_at: datetime | None = None,
    ) -> bool:
        """Write back evaluated signal state.

        When ``expected_updated_at`` is given the update only applies if the
        row still carries that timestamp (optimistic concurrency).

        Returns:
            True if a row was updated
        """
        async with get_database().session() as session:
            stmt = update(SignalTable).where(SignalTable.id == signal_id)
            if expected_updated_at is not None:
                stmt = stmt.where(SignalTable.updated_at == expected_updated_at)
            stmt = stmt.values(
                current_price=current_price,
                status=status.value,
                tp_hit=tp_hit,
                sl_hit=sl_hit,
                pnl=pnl,
                updated_at=updated_at,
            )
            result = await session.execute(stmt)
            return result.rowcount > 0

    def _rows_to_signals(self, rows) -> list[Signal]:
        """Convert rows, skipping any that do not form a valid Signal."""
        signals = []
        for row in rows:
            try:
                signals.append(self._row_to_signal(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed signal {row.id}: {e}")
        return signals

    def _row_to_signal(self, row: SignalTable) -> Signal:
        """Convert database row to Signal model."""
        return Signal(
            id=row.id,
            pair=row.pair,
            type=SignalType(row.type),
            entry_price=Decimal(str(row.entry_price)),
            take_profit_levels=[Decimal(str(level)) for level in row.take_profit_levels or []],
            stop_loss=Decimal(str(row.stop_loss)),
            status=SignalStatus(row.status),
            tp_hit=bool(row.tp_hit),
            sl_hit=bool(row.sl_hit),
            current_price=Decimal(str(row.current_price)) if row.current_price is not None else None,
            pnl=Decimal(str(row.pnl)) if row.pnl is not None else Decimal("0"),
            updated_at=row.updated_at,
        )
