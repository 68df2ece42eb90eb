"""Technical indicator repository."""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert

from app.models import IndicatorReading
from app.storage.database import TechnicalIndicatorTable, get_database


class IndicatorRepository:
    """Repository for technical_indicators rows.

    Rows are matched on upper-cased (pair, indicator_name).
    """

    async def update_reading(
        self,
        reading: IndicatorReading,
        updated_at: datetime,
        insert_missing: bool = False,
    ) -> bool:
        """Overwrite the stored reading for a pair/indicator.

        Args:
            reading: Freshly calculated reading
            updated_at: Timestamp to store
            insert_missing: Insert the row when no existing row matches

        Returns:
            True if a row was written, False if nothing matched
        """
        pair = reading.pair.upper()
        name = reading.indicator_name.upper()
        values = {
            "value": reading.value,
            "status": reading.status,
            "color": reading.color,
            "timeframe": reading.timeframe,
            "updated_at": updated_at,
        }

        async with get_database().session() as session:
            if insert_missing:
                stmt = insert(TechnicalIndicatorTable).values(
                    pair=pair, indicator_name=name, **values
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["pair", "indicator_name"], set_=values
                )
                await session.execute(stmt)
                return True

            stmt = (
                update(TechnicalIndicatorTable)
                .where(
                    TechnicalIndicatorTable.pair == pair,
                    TechnicalIndicatorTable.indicator_name == name,
                )
                .values(**values)
            )
            result = await session.execute(stmt)
            return result.rowcount > 0

    async def seed(self, pairs: list[str], names: tuple[str, ...]) -> None:
        """Provision empty rows for every (pair, indicator) combination."""
        rows = [
            {"pair": pair.upper(), "indicator_name": name.upper()}
            for pair in pairs
            for name in names
        ]
        if not rows:
            return

        async with get_database().session() as session:
            stmt = insert(TechnicalIndicatorTable).values(rows)
            stmt = stmt.on_conflict_do_nothing(index_elements=["pair", "indicator_name"])
            await session.execute(stmt)
