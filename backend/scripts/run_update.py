#!/usr/bin/env python3
"""
Run one update cycle without the HTTP layer (for cron).

Usage:
    python scripts/run_update.py                     # signals + indicators
    python scripts/run_update.py --action signals    # prices + signal lifecycle only
    python scripts/run_update.py --action indicators

Exit code is 0 when every step succeeded, 1 on partial failure and
2 when the configuration could not be loaded.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Make the app package importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services import ACTION_BOTH, VALID_ACTIONS, ConfigurationError, UpdatePipeline
from app.storage import close_database

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def main(action: str) -> int:
    try:
        outcomes = await UpdatePipeline().run(action)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    finally:
        await close_database()

    for outcome in outcomes:
        print(json.dumps(outcome.to_dict(), default=str, indent=2))

    return 0 if all(o.success for o in outcomes) else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run one price/indicator update cycle")
    parser.add_argument(
        "--action", "-a",
        choices=VALID_ACTIONS,
        default=ACTION_BOTH,
        help="Steps to run (default: both)",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.action)))
