"""
Diet Budget Service - turns a patient's diet order into calorie budgets.

Implements:
- the diet order view (limits plus calories already served today)
- recipes still available within the remaining daily budget
- the per-meal calorie target used by the automated prep run
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from domain.enums import ItemCategory, MealTime
from domain.models import Recipe
from domain.schemas.prep_schemas import DietOrderResponse
from repositories import PatientRepository, RecipeRepository
from services.consumption_service import ConsumptionService
from services.meal_composer import MealPools
from app.exceptions import NotFoundError, ServiceValidationError

logger = logging.getLogger("trayprep.budget")

DESSERT_CALORIE_ALLOWANCE = 120


def adjusted_target(meal_time: MealTime, diet_order: DietOrderResponse) -> int:
    """
    Calories available for the meal being assembled.

    The day is split evenly over breakfast, lunch and dinner, then dinner
    borrows room for a dessert from the other two meals. Whatever the patient
    ate beyond (or short of) the meals expected so far shifts the target.

    Args:
        meal_time: breakfast, lunch or dinner
        diet_order: Daily limits plus calories consumed so far today

    Returns:
        Calorie target; zero or negative when the patient is already over

    Raises:
        ServiceValidationError: If the diet order has no maximum
    """
    if diet_order.maximum_calories is None:
        raise ServiceValidationError(
            "Diet order has no maximum calorie limit", code="UNBOUNDED_DIET_ORDER"
        )

    base = (diet_order.maximum_calories + diet_order.minimum_calories) // 6
    dinner_target = base + DESSERT_CALORIE_ALLOWANCE
    light_meal_target = base - DESSERT_CALORIE_ALLOWANCE // 2
    consumed = diet_order.calories_consumed

    if meal_time == MealTime.DINNER:
        # Only over/under consumption beyond breakfast and lunch moves dinner.
        return dinner_target - (consumed - 2 * light_meal_target)
    if meal_time == MealTime.LUNCH:
        return light_meal_target - (consumed - light_meal_target)
    # Usually 0 in the morning unless the patient had an early snack.
    return light_meal_target - consumed


class DietBudgetService:
    """Diet order lookups and remaining-budget recipe queries for one session"""

    def __init__(self, db: Session, consumption: Optional[ConsumptionService] = None):
        self.db: Session = db
        self.patients = PatientRepository(db)
        self.recipes = RecipeRepository(db)
        self.consumption = consumption or ConsumptionService(db)

    def get_diet_order(
        self, patient_id: uuid.UUID, now: Optional[datetime] = None
    ) -> DietOrderResponse:
        """
        Daily calorie limits of a patient plus today's consumption.

        Raises:
            NotFoundError: If the patient has no diet order
        """
        now = now or datetime.now()
        diet_order = self.patients.find_diet_order_for_patient(patient_id)
        if diet_order is None:
            raise NotFoundError(f"Patient {patient_id} has no diet order")

        return DietOrderResponse(
            minimum_calories=diet_order.minimum_calories or 0,
            maximum_calories=diet_order.maximum_calories,
            calories_consumed=self.consumption.consumed_calories(patient_id, now, now=now),
        )

    def get_available_recipes(
        self,
        patient_id: uuid.UUID,
        category: Optional[ItemCategory] = None,
        now: Optional[datetime] = None,
    ) -> List[Recipe]:
        """
        Recipes that fit in what is left of the patient's daily maximum.

        Raises:
            NotFoundError: If the patient has no diet order
        """
        diet_order = self.get_diet_order(patient_id, now=now)
        return self.recipes.find_available(diet_order.remaining_calories(), category)

    def recipe_pools(self, diet_order: DietOrderResponse) -> MealPools:
        """Available recipes for each tray category, from an already resolved diet order"""
        remaining = diet_order.remaining_calories()
        return MealPools(
            entrees=self.recipes.find_available(remaining, ItemCategory.ENTREES),
            sides=self.recipes.find_available(remaining, ItemCategory.SIDES),
            desserts=self.recipes.find_available(remaining, ItemCategory.DESSERTS),
            beverages=self.recipes.find_available(remaining, ItemCategory.BEVERAGES),
        )
