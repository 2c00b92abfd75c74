"""
Prep trigger windows.

An external scheduler (cron) fires the prep trigger every few minutes; only
a trigger inside one of these windows starts a run:

| time frame      | meal time |
|-----------------|-----------|
| 3:30am - 4:00am | breakfast |
| 7:30am - 8:00am | lunch     |
| 1:30pm - 2:00pm | dinner    |
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from domain.enums import MealTime

# (start inclusive, end exclusive, meal time)
PREP_WINDOWS = (
    (time(3, 30), time(4, 0), MealTime.BREAKFAST),
    (time(7, 30), time(8, 0), MealTime.LUNCH),
    (time(13, 30), time(14, 0), MealTime.DINNER),
)


def meal_time_for(now: Optional[datetime] = None) -> Optional[MealTime]:
    """Meal time whose prep window contains `now`, or None outside every window"""
    current = (now or datetime.now()).time()
    for start, end, meal_time in PREP_WINDOWS:
        if start <= current < end:
            return meal_time
    return None
