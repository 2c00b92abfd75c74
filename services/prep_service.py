"""
Prep Service - the automated tray ordering run.

Called shortly before each meal (see services.schedule):
- breakfast run serves 8:00 AM
- lunch run serves 12:00 PM
- dinner run serves 6:00 PM

For each patient without a tray for today's meal it derives the calorie
target, composes a tray and commits it. Problems with one patient are
recorded in the run's errors and never stop the others. Each run leaves
exactly one prep_execution record.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from domain.enums import MealTime, PREP_MEAL_TIMES
from domain.schemas.prep_schemas import (
    ExecutePrepResponse,
    PrepError,
    PrepExecutionResponse,
)
from repositories import PatientRepository, PrepExecutionRepository, TrayOrderRepository
from services.diet_budget_service import DietBudgetService, adjusted_target
from services.execution_guard import ExecutionGuard
from services.helpers import end_of_day, serve_time, start_of_day
from services.meal_composer import MealComposer
from app.config import settings
from app.exceptions import NotFoundError, ServiceValidationError

logger = logging.getLogger("trayprep.prep")

NO_DIET_ORDER = "No diet order found"
NO_MEAL_WITHIN_BUDGET = "Could not build a meal within calorie budget"


class OutcomeStatus(str, enum.Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class PatientOutcome:
    """What the run did for one patient"""

    patient_id: uuid.UUID
    status: OutcomeStatus
    error: Optional[str] = None
    tray_order_id: Optional[uuid.UUID] = None


def summarize(outcomes: Iterable[PatientOutcome]) -> ExecutePrepResponse:
    """Fold per-patient outcomes into the run summary"""
    result = ExecutePrepResponse()
    for outcome in outcomes:
        result.patients_processed += 1
        if outcome.status == OutcomeStatus.CREATED:
            result.orders_created += 1
        elif outcome.status == OutcomeStatus.ERROR:
            result.errors.append(
                PrepError(patient_id=outcome.patient_id, error=outcome.error or "Unknown error")
            )
    return result


class PrepScheduler:
    def __init__(
        self,
        db: Session,
        composer: Optional[MealComposer] = None,
        guard: Optional[ExecutionGuard] = None,
        budget: Optional[DietBudgetService] = None,
    ):
        self.db: Session = db
        self.composer = composer or MealComposer()
        self.guard = guard or ExecutionGuard(db)
        self.budget = budget or DietBudgetService(db)
        self.patients = PatientRepository(db)
        self.tray_orders = TrayOrderRepository(db)
        self.executions = PrepExecutionRepository(db)

    def run(self, meal_time: MealTime, now: Optional[datetime] = None) -> ExecutePrepResponse:
        """
        Create tray orders for every patient without one for today's `meal_time`.

        Args:
            meal_time: breakfast, lunch or dinner (snacks are never auto-ordered)
            now: Current time; defaults to the wall clock

        Returns:
            ExecutePrepResponse with processed/created counts and per-patient
            errors; all zeros when today's run for this meal already happened

        Raises:
            ServiceValidationError: If meal_time is not an automated slot
        """
        if meal_time not in PREP_MEAL_TIMES:
            raise ServiceValidationError(
                "Invalid mealTime. Must be breakfast, lunch, or dinner",
                code="INVALID_MEAL_TIME",
            )
        now = now or datetime.now()

        if self.guard.has_run_today(meal_time, now):
            logger.info("Already ran ordering for %s today. No action taken.", meal_time.value)
            return ExecutePrepResponse()

        execution = self.guard.acquire(meal_time, now)
        if execution is None:
            logger.info("Ordering for %s is claimed by another run. No action taken.", meal_time.value)
            return ExecutePrepResponse()

        serve_at = serve_time(now, meal_time)
        patient_ids = [patient.patient_id for patient in self.patients.find_patients()]
        logger.info(
            "Starting %s prep for %d patients (serving at %s)",
            meal_time.value,
            len(patient_ids),
            serve_at,
        )

        result = summarize(
            self._prepare_patient(patient_id, meal_time, now, serve_at)
            for patient_id in patient_ids
        )

        self.guard.complete(execution, result, now=now)
        logger.info(
            "Finished %s prep: processed=%d created=%d errors=%d",
            meal_time.value,
            result.patients_processed,
            result.orders_created,
            len(result.errors),
        )
        return result

    def _prepare_patient(
        self,
        patient_id: uuid.UUID,
        meal_time: MealTime,
        now: datetime,
        serve_at: datetime,
    ) -> PatientOutcome:
        try:
            if self.tray_orders.exists_for_slot(
                patient_id, meal_time, start_of_day(now), end_of_day(now)
            ):
                return PatientOutcome(patient_id, OutcomeStatus.SKIPPED)

            try:
                diet_order = self.budget.get_diet_order(patient_id, now=now)
            except NotFoundError:
                logger.warning("Patient %s has no diet order", patient_id)
                return PatientOutcome(patient_id, OutcomeStatus.ERROR, NO_DIET_ORDER)

            try:
                target = adjusted_target(meal_time, diet_order)
            except ServiceValidationError as e:
                logger.warning("No %s target for patient %s: %s", meal_time.value, patient_id, e)
                return PatientOutcome(patient_id, OutcomeStatus.ERROR, str(e))

            pools = self.budget.recipe_pools(diet_order)
            meal = self.composer.compose(meal_time, target, pools)
            if not meal:
                logger.warning(
                    "No %s tray for patient %s within %d kcal", meal_time.value, patient_id, target
                )
                return PatientOutcome(patient_id, OutcomeStatus.ERROR, NO_MEAL_WITHIN_BUDGET)

            tray_order = self.tray_orders.create_tray_order(
                patient_id, serve_at, meal_time, [recipe.recipe_id for recipe in meal]
            )
            logger.debug(
                "Created tray %s for patient %s (%d kcal of %d)",
                tray_order.tray_order_id,
                patient_id,
                sum(recipe.calories for recipe in meal),
                target,
            )
            return PatientOutcome(
                patient_id, OutcomeStatus.CREATED, tray_order_id=tray_order.tray_order_id
            )
        except Exception as e:
            self.db.rollback()
            logger.exception("Prep failed for patient %s: %s", patient_id, e)
            return PatientOutcome(patient_id, OutcomeStatus.ERROR, str(e) or "Unknown error")

    def list_executions(
        self, meal_time: Optional[MealTime] = None, limit: Optional[int] = None
    ) -> List[PrepExecutionResponse]:
        """History of completed prep runs, newest first"""
        executions = self.executions.list_recent(meal_time, limit or settings.prep_history_limit)
        return [PrepExecutionResponse.model_validate(execution) for execution in executions]
