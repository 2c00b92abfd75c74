"""
Execution Guard - at most one automated prep run per meal time and day.

The guarantee comes from the prep_execution table itself: a run claims its
slot by inserting a running row, and the unique (meal_time, execution_day)
constraint rejects any second claim. A row left running by a run that died
can be taken over once its lease expires.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from domain.enums import ExecutionStatus, MealTime
from domain.models import PrepExecution
from domain.schemas.prep_schemas import ExecutePrepResponse
from repositories import PrepExecutionRepository
from services.helpers import end_of_day, start_of_day
from app.config import settings
from app.exceptions import ConflictError

logger = logging.getLogger("trayprep.guard")


class ExecutionGuard:
    def __init__(self, db: Session, lease_minutes: Optional[int] = None):
        self.db: Session = db
        self.executions = PrepExecutionRepository(db)
        self.lease = timedelta(minutes=lease_minutes or settings.prep_lease_minutes)

    def has_run_today(self, meal_time: MealTime, now: Optional[datetime] = None) -> bool:
        """
        True when today's prep for `meal_time` is done or still in progress.

        A running record only counts while its lease is live.
        """
        now = now or datetime.now()
        for execution in self.executions.find_for_window(
            meal_time, start_of_day(now), end_of_day(now)
        ):
            if execution.status == ExecutionStatus.COMPLETED:
                return True
            if execution.lease_expires_at is not None and execution.lease_expires_at >= now:
                return True
        return False

    def acquire(
        self, meal_time: MealTime, now: Optional[datetime] = None
    ) -> Optional[PrepExecution]:
        """
        Claim today's slot for `meal_time`.

        Returns:
            The running execution now owned by the caller, or None when
            another run holds or has completed the slot
        """
        now = now or datetime.now()
        day = now.date()
        expires_at = now + self.lease

        try:
            execution = self.executions.insert_lease(meal_time, day, now, expires_at)
        except ConflictError:
            return self._take_over_expired(meal_time, now, expires_at)

        logger.info("Claimed %s prep slot for %s", meal_time.value, day)
        return execution

    def _take_over_expired(
        self, meal_time: MealTime, now: datetime, expires_at: datetime
    ) -> Optional[PrepExecution]:
        day = now.date()
        existing = self.executions.get_for_day(meal_time, day)
        if existing is None or existing.status == ExecutionStatus.COMPLETED:
            return None

        if self.executions.take_over_expired(existing.prep_execution_id, now, expires_at):
            logger.warning(
                "Took over expired %s prep lease for %s (previous run did not finish)",
                meal_time.value,
                day,
            )
            self.db.refresh(existing)
            return existing

        logger.info("%s prep slot for %s is held by another run", meal_time.value, day)
        return None

    def complete(
        self,
        execution: PrepExecution,
        result: ExecutePrepResponse,
        now: Optional[datetime] = None,
    ) -> PrepExecution:
        """Persist the run summary on the claimed execution record"""
        return self.executions.complete(
            execution,
            patients_processed=result.patients_processed,
            orders_created=result.orders_created,
            errors=[error.model_dump(mode="json") for error in result.errors],
            executed_at=now or datetime.now(),
        )
