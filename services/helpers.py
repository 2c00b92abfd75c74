"""
Date and time helpers shared by the prep services.

All timestamps are naive local wall-clock datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Union

from domain.enums import MealTime

DateLike = Union[date, datetime]

# Fixed serve times for the automated slots.
SERVE_TIMES = {
    MealTime.BREAKFAST: time(8, 0),
    MealTime.LUNCH: time(12, 0),
    MealTime.DINNER: time(18, 0),
}


def _as_date(d: DateLike) -> date:
    return d.date() if isinstance(d, datetime) else d


def start_of_day(d: DateLike) -> datetime:
    """Returns 12:01 AM of the given day"""
    return datetime.combine(_as_date(d), time(0, 1))


def end_of_day(d: DateLike) -> datetime:
    """Returns 11:59:59.999 PM of the given day"""
    return datetime.combine(_as_date(d), time(23, 59, 59, 999000))


def serve_time(d: DateLike, meal_time: MealTime) -> datetime:
    """
    Returns the time a tray for `meal_time` is served on the given day.

    Raises:
        ValueError: For meal times without a fixed serve time (snack)
    """
    try:
        return datetime.combine(_as_date(d), SERVE_TIMES[meal_time])
    except KeyError:
        raise ValueError(f"No serve time for meal time '{meal_time.value}'") from None
