"""
Tests for calorie target derivation and diet order lookups.
"""

import pytest
from datetime import timedelta

from test_fixtures import NOW, db_session, add_patient, add_recipe, add_tray
from domain.enums import ItemCategory, MealTime
from domain.schemas.prep_schemas import DietOrderResponse
from services.diet_budget_service import DietBudgetService, adjusted_target
from app.exceptions import NotFoundError, ServiceValidationError


def diet(minimum=1500, maximum=2500, consumed=0):
    return DietOrderResponse(
        minimum_calories=minimum, maximum_calories=maximum, calories_consumed=consumed
    )


# =============================================================================
# TARGET DERIVATION
# =============================================================================


def test_lunch_target_without_prior_consumption():
    # base = floor(2000 / 3) = 666, light meal = 606, lunch = 606 - (0 - 606)
    assert adjusted_target(MealTime.LUNCH, diet()) == 1212


def test_breakfast_target_subtracts_raw_consumption():
    assert adjusted_target(MealTime.BREAKFAST, diet()) == 606
    assert adjusted_target(MealTime.BREAKFAST, diet(consumed=150)) == 456


def test_dinner_target_only_moves_with_unexpected_consumption():
    # dinner = 786; breakfast + lunch were expected to be 2 * 606
    assert adjusted_target(MealTime.DINNER, diet(consumed=1212)) == 786
    assert adjusted_target(MealTime.DINNER, diet(consumed=1312)) == 686
    assert adjusted_target(MealTime.DINNER, diet(consumed=1112)) == 886


def test_target_can_go_negative():
    assert adjusted_target(MealTime.BREAKFAST, diet(consumed=700)) == -94


def test_target_is_pure():
    order = diet(minimum=1200, maximum=1800, consumed=430)
    assert adjusted_target(MealTime.LUNCH, order) == adjusted_target(MealTime.LUNCH, order)


def test_unbounded_diet_order_has_no_target():
    with pytest.raises(ServiceValidationError) as exc:
        adjusted_target(MealTime.LUNCH, diet(maximum=None))
    assert str(exc.value) == "Diet order has no maximum calorie limit"


# =============================================================================
# DIET ORDER LOOKUPS
# =============================================================================


def test_get_diet_order_includes_consumption(db_session):
    patient = add_patient(db_session)
    soup = add_recipe(db_session, "soup", ItemCategory.ENTREES, 350)
    add_tray(db_session, patient, NOW.replace(hour=7, minute=0), MealTime.BREAKFAST, [soup])

    result = DietBudgetService(db_session).get_diet_order(patient.patient_id, now=NOW)

    assert result.minimum_calories == 1500
    assert result.maximum_calories == 2500
    assert result.calories_consumed == 350
    assert result.remaining_calories() == 2150


def test_get_diet_order_defaults_missing_bounds(db_session):
    patient = add_patient(db_session, minimum_calories=None, maximum_calories=None)

    result = DietBudgetService(db_session).get_diet_order(patient.patient_id, now=NOW)

    assert result.minimum_calories == 0
    assert result.maximum_calories is None
    assert result.remaining_calories() is None


def test_get_diet_order_without_assignment(db_session):
    patient = add_patient(db_session, with_diet_order=False)

    with pytest.raises(NotFoundError):
        DietBudgetService(db_session).get_diet_order(patient.patient_id, now=NOW)


def test_available_recipes_respect_remaining_budget(db_session):
    patient = add_patient(db_session, minimum_calories=1000, maximum_calories=1200)
    big = add_recipe(db_session, "lasagna", ItemCategory.ENTREES, 900)
    add_recipe(db_session, "salmon", ItemCategory.ENTREES, 500)
    add_recipe(db_session, "omelette", ItemCategory.ENTREES, 300)
    add_recipe(db_session, "tea", ItemCategory.BEVERAGES, 0)
    add_tray(db_session, patient, NOW - timedelta(hours=1), MealTime.BREAKFAST, [big])

    service = DietBudgetService(db_session)
    recipes = service.get_available_recipes(patient.patient_id, now=NOW)
    entrees = service.get_available_recipes(patient.patient_id, ItemCategory.ENTREES, now=NOW)

    # 1200 - 900 consumed leaves 300
    assert [r.name for r in recipes] == ["omelette", "tea"]
    assert [r.name for r in entrees] == ["omelette"]


def test_recipe_pools_are_sorted_by_calories_descending(db_session):
    add_recipe(db_session, "fruit cup", ItemCategory.SIDES, 60)
    add_recipe(db_session, "mashed potatoes", ItemCategory.SIDES, 210)
    add_recipe(db_session, "water", ItemCategory.SIDES, 0)
    add_recipe(db_session, "pudding", ItemCategory.DESSERTS, 180)

    pools = DietBudgetService(db_session).recipe_pools(diet())

    assert [r.name for r in pools.sides] == ["mashed potatoes", "fruit cup", "water"]
    assert [r.name for r in pools.desserts] == ["pudding"]
    assert list(pools.entrees) == []
