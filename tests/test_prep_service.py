"""
Tests for the automated prep run.
"""

import logging
import pytest
import uuid
from types import SimpleNamespace
from datetime import timedelta

from test_fixtures import NOW, db_session, add_patient, add_recipe, add_tray
from domain.enums import ExecutionStatus, ItemCategory, MealTime
from domain.models import PrepExecution, TrayOrder
from domain.schemas.prep_schemas import ExecutePrepResponse
from repositories import TrayOrderRepository
from services.prep_service import (
    NO_DIET_ORDER,
    NO_MEAL_WITHIN_BUDGET,
    OutcomeStatus,
    PatientOutcome,
    PrepScheduler,
    summarize,
)
from app.exceptions import ServiceValidationError


class BoomComposer:
    def compose(self, meal_time, target, pools):
        raise RuntimeError("boom")


class StubGuard:
    """Guard that always grants the slot; `fail_on` names the step that raises"""

    def __init__(self, fail_on):
        self.fail_on = fail_on

    def has_run_today(self, meal_time, now=None):
        if self.fail_on == "has_run_today":
            raise RuntimeError("database unavailable")
        return False

    def acquire(self, meal_time, now=None):
        return SimpleNamespace(meal_time=meal_time)

    def complete(self, execution, result, now=None):
        if self.fail_on == "complete":
            raise RuntimeError("disk full")
        return execution


@pytest.fixture
def lunch_menu(db_session):
    """One recipe per category; a 1500-2500 kcal patient's lunch is exactly all three"""
    return {
        "entree": add_recipe(db_session, "turkey dinner", ItemCategory.ENTREES, 1000),
        "side": add_recipe(db_session, "green beans", ItemCategory.SIDES, 112),
        "beverage": add_recipe(db_session, "lemonade", ItemCategory.BEVERAGES, 100),
    }


def errors_by_patient(result):
    return {error.patient_id: error.error for error in result.errors}


# =============================================================================
# HAPPY PATH
# =============================================================================


def test_lunch_run_creates_tray_at_noon(db_session, lunch_menu):
    patient = add_patient(db_session)

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    assert result == ExecutePrepResponse(patients_processed=1, orders_created=1, errors=[])

    trays = TrayOrderRepository(db_session).get_by_patient(patient.patient_id, MealTime.LUNCH)
    assert len(trays) == 1
    tray = trays[0]
    assert tray.scheduled_for == NOW.replace(hour=12, minute=0)
    assert [line.recipe.name for line in tray.recipes] == ["turkey dinner", "lemonade", "green beans"]
    assert [line.position for line in tray.recipes] == [0, 1, 2]
    assert sum(line.recipe.calories for line in tray.recipes) == 1212


def test_run_records_one_completed_execution(db_session, lunch_menu):
    add_patient(db_session)

    PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    execution = db_session.query(PrepExecution).one()
    assert execution.meal_time == MealTime.LUNCH
    assert execution.status == ExecutionStatus.COMPLETED
    assert execution.execution_day == NOW.date()
    assert execution.patients_processed == 1
    assert execution.orders_created == 1


def test_second_run_same_day_is_a_no_op(db_session, lunch_menu):
    add_patient(db_session)
    scheduler = PrepScheduler(db_session)
    scheduler.run(MealTime.LUNCH, now=NOW)

    again = scheduler.run(MealTime.LUNCH, now=NOW + timedelta(minutes=10))

    assert again == ExecutePrepResponse()
    assert db_session.query(PrepExecution).count() == 1
    assert db_session.query(TrayOrder).count() == 1


def test_other_meal_time_still_runs(db_session, lunch_menu):
    add_patient(db_session)
    scheduler = PrepScheduler(db_session)
    scheduler.run(MealTime.LUNCH, now=NOW)

    dinner = scheduler.run(MealTime.DINNER, now=NOW.replace(hour=13, minute=40))

    assert dinner.patients_processed == 1
    assert db_session.query(PrepExecution).count() == 2


# =============================================================================
# PER-PATIENT OUTCOMES
# =============================================================================


def test_patient_with_existing_tray_is_skipped(db_session, lunch_menu):
    patient = add_patient(db_session)
    add_tray(db_session, patient, NOW.replace(hour=12, minute=0), MealTime.LUNCH, [lunch_menu["side"]])

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    assert result.patients_processed == 1
    assert result.orders_created == 0
    assert result.errors == []
    assert db_session.query(TrayOrder).count() == 1


def test_patient_without_diet_order(db_session, lunch_menu):
    patient = add_patient(db_session, with_diet_order=False)

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    assert errors_by_patient(result) == {patient.patient_id: NO_DIET_ORDER}
    assert result.orders_created == 0


def test_patient_whose_budget_fits_no_tray(db_session, lunch_menu):
    # lunch target is 180 kcal; only the 112 kcal side fits and it never adds up
    patient = add_patient(db_session, minimum_calories=300, maximum_calories=600)

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    assert errors_by_patient(result) == {patient.patient_id: NO_MEAL_WITHIN_BUDGET}


def test_patient_with_unbounded_diet_order(db_session, lunch_menu, caplog):
    patient = add_patient(db_session, maximum_calories=None)
    caplog.set_level(logging.WARNING, logger="trayprep.prep")

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    records = [r for r in caplog.records if r.name == "trayprep.prep" and r.levelno >= logging.WARNING]
    assert [r.levelno for r in records] == [logging.WARNING]
    assert records[0].exc_info is None
    assert errors_by_patient(result) == {
        patient.patient_id: "Diet order has no maximum calorie limit"
    }


def test_mixed_ward_counts_add_up(db_session, lunch_menu):
    served = add_patient(db_session, name="Ana Ruiz")
    ordered = add_patient(db_session, name="Ben Cole")
    add_tray(db_session, ordered, NOW.replace(hour=12, minute=0), MealTime.LUNCH, [lunch_menu["side"]])
    missing = add_patient(db_session, name="Cara Diaz", with_diet_order=False)

    result = PrepScheduler(db_session).run(MealTime.LUNCH, now=NOW)

    assert result.patients_processed == 3
    assert result.orders_created == 1
    assert errors_by_patient(result) == {missing.patient_id: NO_DIET_ORDER}
    assert TrayOrderRepository(db_session).get_by_patient(served.patient_id)


def test_failing_patient_does_not_stop_the_run(db_session, lunch_menu):
    first = add_patient(db_session, name="Ana Ruiz")
    second = add_patient(db_session, name="Ben Cole")

    result = PrepScheduler(db_session, composer=BoomComposer()).run(MealTime.DINNER, now=NOW)

    assert result.patients_processed == 2
    assert result.orders_created == 0
    assert errors_by_patient(result) == {first.patient_id: "boom", second.patient_id: "boom"}

    execution = db_session.query(PrepExecution).one()
    assert execution.status == ExecutionStatus.COMPLETED
    assert {error["error"] for error in execution.errors} == {"boom"}
    assert {error["patient_id"] for error in execution.errors} == {
        str(first.patient_id),
        str(second.patient_id),
    }


def test_empty_ward(db_session):
    result = PrepScheduler(db_session).run(MealTime.BREAKFAST, now=NOW.replace(hour=3, minute=45))

    assert result == ExecutePrepResponse()
    assert db_session.query(PrepExecution).one().status == ExecutionStatus.COMPLETED


def test_snack_is_rejected(db_session):
    with pytest.raises(ServiceValidationError) as exc:
        PrepScheduler(db_session).run(MealTime.SNACK, now=NOW)
    assert exc.value.code == "INVALID_MEAL_TIME"
    assert db_session.query(PrepExecution).count() == 0


def test_summarize_outcomes():
    ok, skipped, failed = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    result = summarize(
        [
            PatientOutcome(ok, OutcomeStatus.CREATED),
            PatientOutcome(skipped, OutcomeStatus.SKIPPED),
            PatientOutcome(failed, OutcomeStatus.ERROR, "No diet order found"),
        ]
    )

    assert result.patients_processed == 3
    assert result.orders_created == 1
    assert errors_by_patient(result) == {failed: "No diet order found"}


# =============================================================================
# HISTORY
# =============================================================================


def test_list_executions_newest_first(db_session, lunch_menu):
    add_patient(db_session)
    scheduler = PrepScheduler(db_session)
    scheduler.run(MealTime.BREAKFAST, now=NOW.replace(hour=3, minute=40))
    scheduler.run(MealTime.LUNCH, now=NOW)

    history = scheduler.list_executions()
    lunch_only = scheduler.list_executions(MealTime.LUNCH)

    assert [run.meal_time for run in history] == [MealTime.LUNCH, MealTime.BREAKFAST]
    assert len(lunch_only) == 1
    assert lunch_only[0].orders_created == 1
    assert scheduler.list_executions(limit=1)[0].meal_time == MealTime.LUNCH


# =============================================================================
# RUN-LEVEL FAILURES
# =============================================================================


def test_failed_guard_check_propagates(db_session, lunch_menu):
    add_patient(db_session)

    with pytest.raises(RuntimeError, match="database unavailable"):
        PrepScheduler(db_session, guard=StubGuard("has_run_today")).run(MealTime.LUNCH, now=NOW)

    assert db_session.query(TrayOrder).count() == 0


def test_failed_execution_record_propagates(db_session, lunch_menu):
    add_patient(db_session)

    with pytest.raises(RuntimeError, match="disk full"):
        PrepScheduler(db_session, guard=StubGuard("complete")).run(MealTime.LUNCH, now=NOW)

    # the patient's tray was committed before the run record failed
    assert db_session.query(TrayOrder).count() == 1
