"""Database connection and table definitions."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.config import get_settings

Base = declarative_base()


class SignalTable(Base):
    """Trading signals (created externally, mutated by the evaluator)."""

    __tablename__ = "signals"

    id = Column(String(36), primary_key=True)
    pair = Column(String(20), nullable=False)
    type = Column(String(4), nullable=False)  # BUY | SELL
    entry_price = Column(Numeric(20, 8), nullable=False)
    take_profit_levels = Column(ARRAY(Numeric(20, 8)), nullable=False)
    stop_loss = Column(Numeric(20, 8), nullable=False)
    status = Column(String(10), nullable=False, default="pending")
    tp_hit = Column(Boolean, nullable=False, default=False)
    sl_hit = Column(Boolean, nullable=False, default=False)
    current_price = Column(Numeric(20, 8), nullable=True)
    pnl = Column(Numeric(20, 8), default=0)
    created_at = Column(DateTime(timezone=True), server_default=text("NOW()"))
    updated_at = Column(DateTime(timezone=True), server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_signals_status", "status"),
        Index("idx_signals_pair_status", "pair", "status"),
    )


class PriceSummaryTable(Base):
    """Latest OHLCV snapshot per pair."""

    __tablename__ = "price_summary"

    pair = Column(String(20), primary_key=True)
    current_price = Column(Numeric(20, 8), nullable=False)
    high_price = Column(Numeric(20, 8), nullable=False)
    low_price = Column(Numeric(20, 8), nullable=False)
    open_price = Column(Numeric(20, 8), nullable=False)
    volume = Column(String(40), default="0")
    change_amount = Column(Numeric(20, 8), default=0)
    change_percent = Column(Numeric(12, 6), default=0)
    updated_at = Column(DateTime(timezone=True), server_default=text("NOW()"))


class MarketDataTable(Base):
    """Latest price per pair in the legacy market_data layout."""

    __tablename__ = "market_data"

    pair = Column(String(20), primary_key=True)
    price = Column(Numeric(20, 8), nullable=False)
    change = Column(Numeric(20, 8), default=0)
    change_percent = Column(Numeric(12, 6), default=0)
    high = Column(Numeric(20, 8), nullable=False)
    low = Column(Numeric(20, 8), nullable=False)
    volume = Column(String(40), default="0")
    updated_at = Column(DateTime(timezone=True), server_default=text("NOW()"))


class TechnicalIndicatorTable(Base):
    """Current indicator reading per (pair, indicator_name)."""

    __tablename__ = "technical_indicators"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pair = Column(String(20), nullable=False)
    indicator_name = Column(String(10), nullable=False)
    value = Column(String(32), nullable=False, default="")
    status = Column(String(32), nullable=False, default="")
    color = Column(String(16), nullable=False, default="")
    timeframe = Column(String(10), nullable=False, default="")
    updated_at = Column(DateTime(timezone=True), server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_technical_indicators_pair_name", "pair", "indicator_name", unique=True),
    )


class SystemConfigTable(Base):
    """Key/value configuration rows."""

    __tablename__ = "system_config"

    config_key = Column(String(64), primary_key=True)
    config_value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=text("NOW()"))


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        settings = get_settings()
        url = database_url or settings.database_url

        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        # Each invocation touches a handful of rows; a small pool is enough
        self.engine = create_async_engine(
            url,
            echo=settings.debug,
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_timeout=30,
            connect_args={
                "timeout": 10,
                "command_timeout": 60,
            },
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()


# Global database instance
_db: Database | None = None


def get_database() -> Database:
    """Get the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db


async def init_database() -> Database:
    """Initialize the database and create tables."""
    db = get_database()
    await db.create_tables()
    return db


async def close_database() -> None:
    """Dispose the global database instance, if any."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
