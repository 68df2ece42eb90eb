#!/usr/bin/env python3
"""Initialize the database, create tables and provision config rows."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.config import get_settings
from app.storage import (
    KEY_LAST_INDICATOR_UPDATE,
    KEY_LAST_PRICE_UPDATE,
    KEY_SUPPORTED_PAIRS,
    IndicatorRepository,
    SystemConfigRepository,
    init_database,
)
from core.indicators import INDICATOR_NAMES

DEFAULT_PAIRS = "XAU/USD,BTC/USD"


async def main(pairs: str, api_key: str | None):
    print("Initializing database...")
    db = await init_database()

    config_repo = SystemConfigRepository()
    await config_repo.set_value(KEY_SUPPORTED_PAIRS, pairs)
    for key in (KEY_LAST_PRICE_UPDATE, KEY_LAST_INDICATOR_UPDATE):
        existing = await config_repo.get_values([key])
        if key not in existing:
            await config_repo.set_value(key, "")
    if api_key:
        await config_repo.set_value(get_settings().twelvedata_config_key, api_key)

    pair_list = [p.strip() for p in pairs.split(",") if p.strip()]
    await IndicatorRepository().seed(pair_list, INDICATOR_NAMES)

    print("Database initialized successfully!")
    print("Tables created: signals, price_summary, market_data, technical_indicators, system_config")
    print(f"Supported pairs: {', '.join(pair_list)}")
    await db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed configuration")
    parser.add_argument("--pairs", default=DEFAULT_PAIRS, help="Comma separated pairs")
    parser.add_argument("--api-key", help="TwelveData API key to store")
    args = parser.parse_args()
    asyncio.run(main(args.pairs, args.api_key))
