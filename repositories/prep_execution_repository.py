"""
Prep Execution Repository - Data access for prep run records and slot leases
"""

from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from repositories.base import BaseRepository
from domain.models import PrepExecution
from domain.enums import MealTime, ExecutionStatus
from app.exceptions import ConflictError


class PrepExecutionRepository(BaseRepository[PrepExecution]):
    """Repository for prep execution data access"""

    def __init__(self, db: Session):
        super().__init__(db, PrepExecution)

    def get_by_id(self, prep_execution_id: UUID) -> Optional[PrepExecution]:
        """Get prep execution by ID"""
        return (
            self.db.query(PrepExecution)
            .filter(PrepExecution.prep_execution_id == prep_execution_id)
            .first()
        )

    def find_for_window(
        self, meal_time: MealTime, start: datetime, end: datetime
    ) -> List[PrepExecution]:
        """Get executions for a slot whose executed_at falls within [start, end]"""
        return (
            self.db.query(PrepExecution)
            .filter(
                PrepExecution.meal_time == meal_time,
                PrepExecution.executed_at >= start,
                PrepExecution.executed_at <= end,
            )
            .all()
        )

    def get_for_day(self, meal_time: MealTime, day: date) -> Optional[PrepExecution]:
        """Get the execution row holding a slot on a given day"""
        return (
            self.db.query(PrepExecution)
            .filter(
                PrepExecution.meal_time == meal_time,
                PrepExecution.execution_day == day,
            )
            .first()
        )

    def insert_lease(
        self, meal_time: MealTime, day: date, now: datetime, expires_at: datetime
    ) -> PrepExecution:
        """
        Claim a slot for a day by inserting a running execution row.

        Raises:
            ConflictError: If another execution already holds the slot for that day
        """
        execution = PrepExecution(
            meal_time=meal_time,
            execution_day=day,
            executed_at=now,
            status=ExecutionStatus.RUNNING,
            lease_expires_at=expires_at,
            patients_processed=0,
            orders_created=0,
            errors=[],
        )
        try:
            self.db.add(execution)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"Prep for {meal_time.value} on {day.isoformat()} is already claimed",
                code="PREP_SLOT_CLAIMED",
            ) from e
        self.db.refresh(execution)
        return execution

    def take_over_expired(
        self, prep_execution_id: UUID, now: datetime, expires_at: datetime
    ) -> bool:
        """
        Re-claim a running execution whose lease has expired.

        The update only matches while the row is still running and expired, so
        at most one caller wins.
        """
        updated = (
            self.db.query(PrepExecution)
            .filter(
                PrepExecution.prep_execution_id == prep_execution_id,
                PrepExecution.status == ExecutionStatus.RUNNING,
                PrepExecution.lease_expires_at < now,
            )
            .update(
                {
                    PrepExecution.executed_at: now,
                    PrepExecution.lease_expires_at: expires_at,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1

    def complete(
        self,
        execution: PrepExecution,
        patients_processed: int,
        orders_created: int,
        errors: List[Dict[str, Any]],
        executed_at: datetime,
    ) -> PrepExecution:
        """Write the run summary and mark the execution completed"""
        execution.patients_processed = patients_processed
        execution.orders_created = orders_created
        execution.errors = errors
        execution.executed_at = executed_at
        execution.status = ExecutionStatus.COMPLETED
        execution.lease_expires_at = None
        self.db.commit()
        self.db.refresh(execution)
        return execution

    def list_recent(
        self, meal_time: Optional[MealTime] = None, limit: int = 50
    ) -> List[PrepExecution]:
        """Get completed executions, newest first"""
        query = self.db.query(PrepExecution).filter(
            PrepExecution.status == ExecutionStatus.COMPLETED
        )
        if meal_time is not None:
            query = query.filter(PrepExecution.meal_time == meal_time)
        return query.order_by(PrepExecution.executed_at.desc()).limit(limit).all()
