"""REST API routes."""

import logging
import secrets
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from app.config import Settings, get_settings
from app.models import SignalStatus
from app.services import (
    ACTION_BOTH,
    VALID_ACTIONS,
    ConfigurationError,
    UpdatePipeline,
)
from app.services.update_pipeline import utc_now_iso
from app.storage import (
    KEY_LAST_INDICATOR_UPDATE,
    KEY_LAST_PRICE_UPDATE,
    MarketRepository,
    SignalRepository,
    SystemConfigRepository,
)
from core.health import assess_health, parse_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class SignalResponse(BaseModel):
    """Signal response model."""

    id: str
    pair: str
    type: str
    entry_price: float
    take_profit_levels: list[float]
    stop_loss: float
    status: str
    tp_hit: bool
    sl_hit: bool
    current_price: Optional[float] = None
    pnl: float
    updated_at: Optional[datetime] = None


class SystemStatusResponse(BaseModel):
    """System status response."""

    last_price_update: str
    last_indicator_update: str
    system_health: str


# Dependencies
def get_pipeline() -> UpdatePipeline:
    return UpdatePipeline()


def get_signal_repo() -> SignalRepository:
    return SignalRepository()


def get_market_repo() -> MarketRepository:
    return MarketRepository()


def get_config_repo() -> SystemConfigRepository:
    return SystemConfigRepository()


def _error_response(error: str, exc: Exception, status_code: int = 500) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "details": str(exc),
            "timestamp": utc_now_iso(),
        },
    )


@router.post("/update-signals")
async def update_signals(
    key: Optional[str] = Query(None, description="Shared secret"),
    settings: Settings = Depends(get_settings),
    pipeline: UpdatePipeline = Depends(get_pipeline),
):
    """Fetch prices and move signals through their lifecycle."""
    expected = settings.edge_secret_key
    if not key or not expected or not secrets.compare_digest(
        key.encode("utf-8"), expected.encode("utf-8")
    ):
        return ORJSONResponse(status_code=403, content={"error": "Unauthorized"})

    logger.info("Starting signal update process")
    try:
        config = await pipeline.load_config()
        result = await pipeline.update_signals(config)
    except Exception as e:
        logger.error(f"Signal update error: {e}")
        return _error_response("Failed to update signals", e)

    return result.to_dict()


@router.post("/update-indicators")
async def update_indicators(pipeline: UpdatePipeline = Depends(get_pipeline)):
    """Fetch RSI/MACD/ATR and store classified readings."""
    try:
        config = await pipeline.load_config()
        result = await pipeline.update_indicators(config)
    except Exception as e:
        logger.error(f"Indicators update error: {e}")
        return _error_response("Failed to update technical indicators", e)

    return result.to_dict()


@router.post("/manual-trigger")
async def manual_trigger(
    action: str = Query(ACTION_BOTH, description="signals, indicators or both"),
    pipeline: UpdatePipeline = Depends(get_pipeline),
):
    """Run the selected update steps; 207 when only some succeed."""
    logger.info(f"Manual trigger requested: {action}")

    if action not in VALID_ACTIONS:
        return _error_response(
            "Failed to execute manual trigger",
            ValueError(f"action must be one of {', '.join(VALID_ACTIONS)}"),
            status_code=400,
        )

    try:
        outcomes = await pipeline.run(action)
    except ConfigurationError as e:
        logger.error(f"Manual trigger error: {e}")
        return _error_response("Failed to execute manual trigger", e)

    all_successful = all(o.success for o in outcomes)
    return ORJSONResponse(
        status_code=200 if all_successful else 207,
        content={
            "success": all_successful,
            "message": f"Manual trigger completed for: {action}",
            "results": [o.to_dict() for o in outcomes],
            "timestamp": utc_now_iso(),
        },
    )


@router.get("/system-status", response_model=SystemStatusResponse)
async def get_system_status(repo: SystemConfigRepository = Depends(get_config_repo)):
    """Freshness of the price and indicator updates."""
    try:
        values = await repo.get_values([KEY_LAST_PRICE_UPDATE, KEY_LAST_INDICATOR_UPDATE])
    except Exception as e:
        logger.error(f"Error fetching system status: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch system status")

    last_price = values.get(KEY_LAST_PRICE_UPDATE) or ""
    last_indicator = values.get(KEY_LAST_INDICATOR_UPDATE) or ""
    health = assess_health(parse_timestamp(last_price), parse_timestamp(last_indicator))

    return SystemStatusResponse(
        last_price_update=last_price,
        last_indicator_update=last_indicator,
        system_health=health.value,
    )


@router.get("/prices")
async def get_prices(repo: MarketRepository = Depends(get_market_repo)):
    """Live price summary, most recently updated first."""
    try:
        return await repo.get_price_summaries()
    except Exception as e:
        logger.error(f"Error fetching prices: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch prices")


@router.get("/signals", response_model=list[SignalResponse])
async def get_signals(
    status: Optional[SignalStatus] = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum signals to return"),
    days: Optional[int] = Query(None, ge=1, le=365, description="Only signals created in the last N days"),
    repo: SignalRepository = Depends(get_signal_repo),
):
    """Get recently updated signals.

    ``status=closed&days=7`` gives the recent closed-signal performance view.
    """
    try:
        signals = await repo.get_recent(limit=limit, status=status, days=days)
    except Exception as e:
        logger.error(f"Error fetching signals: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch signals")

    return [
        SignalResponse(
            id=s.id,
            pair=s.pair,
            type=s.type.value,
            entry_price=float(s.entry_price),
            take_profit_levels=[float(level) for level in s.take_profit_levels],
            stop_loss=float(s.stop_loss),
            status=s.status.value,
            tp_hit=s.tp_hit,
            sl_hit=s.sl_hit,
            current_price=float(s.current_price) if s.current_price is not None else None,
            pnl=float(s.pnl),
            updated_at=s.updated_at,
        )
        for s in signals
    ]
