"""
Consumption Service - how many calories a patient has already been served today.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from repositories import TrayOrderRepository
from services.helpers import end_of_day, start_of_day

logger = logging.getLogger("trayprep.consumption")


class ConsumptionService:
    """
    Sums the calories of trays already served to a patient on a given day.

    Only trays scheduled between 12:01 AM and the earlier of `now` and the end
    of that day count; trays scheduled later than `now` have not been served.
    """

    def __init__(self, db: Session):
        self.db: Session = db
        self.tray_orders = TrayOrderRepository(db)

    def consumed_calories(
        self, patient_id: uuid.UUID, day: date, now: Optional[datetime] = None
    ) -> int:
        now = now or datetime.now()
        window_start = start_of_day(day)
        window_end = min(now, end_of_day(day))

        # Day is entirely in the future.
        if window_start > window_end:
            return 0

        total = self.tray_orders.sum_calories_between(patient_id, window_start, window_end)
        logger.debug(
            "Patient %s consumed %d kcal between %s and %s",
            patient_id,
            total,
            window_start,
            window_end,
        )
        return total
