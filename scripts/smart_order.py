#!/usr/bin/env python3
"""
Smart order trigger - meant to be fired by cron every few minutes.

Works out which meal's prep window is open and runs the automated tray
ordering for it. Outside every window it does nothing.

Usage:
    python scripts/smart_order.py
    python scripts/smart_order.py --meal-time lunch   # force a meal
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import settings  # noqa: E402
from domain.enums import MealTime, PREP_MEAL_TIMES  # noqa: E402

logger = logging.getLogger("smart_order")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create tray orders for patients who have not ordered the upcoming meal"
    )
    parser.add_argument(
        "--meal-time",
        choices=[meal_time.value for meal_time in PREP_MEAL_TIMES],
        help="Run for this meal regardless of the current time",
    )
    return parser.parse_args(argv)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()), format=settings.log_format
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()

    from domain.models import SessionLocal
    from services.prep_service import PrepScheduler
    from services.schedule import meal_time_for

    meal_time = MealTime(args.meal_time) if args.meal_time else meal_time_for()
    if meal_time is None:
        logger.info("Outside of meal prep trigger window. No action taken.")
        return 0

    db = SessionLocal()
    try:
        result = PrepScheduler(db).run(meal_time)
    except Exception as e:
        logger.error(f"Smart order run for {meal_time.value} failed: {e}")
        return 1
    finally:
        db.close()

    logger.info(
        f"Smart order system ran for {meal_time.value}: "
        f"processed={result.patients_processed} created={result.orders_created} "
        f"errors={len(result.errors)}"
    )
    for error in result.errors:
        logger.warning(f"  patient {error.patient_id}: {error.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
