"""Price summary and market data repository."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from app.models import PriceSummary
from app.storage.database import MarketDataTable, PriceSummaryTable, get_database


class MarketRepository:
    """Repository for the per-pair price_summary and market_data tables."""

    async def upsert_price_summary(self, price: PriceSummary, updated_at: datetime) -> None:
        """Insert or overwrite the OHLCV snapshot for a pair."""
        values = {
            "current_price": price.current_price,
            "high_price": price.high_price,
            "low_price": price.low_price,
            "open_price": price.open_price,
            "volume": price.volume,
            "change_amount": price.change_amount,
            "updated_at": updated_at,
        }
        if price.change_percent is not None:
            values["change_percent"] = price.change_percent

        async with get_database().session() as session:
            stmt = insert(PriceSummaryTable).values(pair=price.pair, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["pair"], set_=values)
            await session.execute(stmt)

    async def upsert_market_data(self, price: PriceSummary, updated_at: datetime) -> None:
        """Insert or overwrite the market_data row for a pair."""
        values = {
            "price": price.current_price,
            "change": price.change_amount,
            "high": price.high_price,
            "low": price.low_price,
            "volume": price.volume,
            "updated_at": updated_at,
        }
        if price.change_percent is not None:
            values["change_percent"] = price.change_percent

        async with get_database().session() as session:
            stmt = insert(MarketDataTable).values(pair=price.pair, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["pair"], set_=values)
            await session.execute(stmt)

    async def get_current_prices(self, pairs: list[str]) -> dict[str, Decimal | None]:
        """Get the last stored market price for each pair (None if unknown)."""
        prices: dict[str, Decimal | None] = {pair: None for pair in pairs}
        if not pairs:
            return prices

        async with get_database().session() as session:
            stmt = select(MarketDataTable.pair, MarketDataTable.price).where(
                MarketDataTable.pair.in_(pairs)
            )
            result = await session.execute(stmt)
            for pair, price in result.all():
                prices[pair] = Decimal(str(price)) if price is not None else None

        return prices

    async def get_price_summaries(self) -> list[dict]:
        """Get all price_summary rows, most recently updated first."""
        async with get_database().session() as session:
            stmt = select(PriceSummaryTable).order_by(PriceSummaryTable.updated_at.desc())
            result = await session.execute(stmt)
            rows = result.scalars().all()

            return [
                {
                    "pair": row.pair,
                    "current_price": float(row.current_price),
                    "high_price": float(row.high_price),
                    "low_price": float(row.low_price),
                    "open_price": float(row.open_price),
                    "volume": row.volume,
                    "change_amount": float(row.change_amount or 0),
                    "change_percent": float(row.change_percent or 0),
                    "updated_at": row.updated_at,
                }
                for row in rows
            ]
