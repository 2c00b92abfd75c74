"""Automated prep routes - endpoints used by the scheduled tray ordering job"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from uuid import UUID

from api.dependencies import get_db
from domain.enums import ItemCategory, MealTime, PREP_MEAL_TIMES
from domain.schemas.prep_schemas import (
    AvailableRecipesResponse,
    DietOrderResponse,
    ExecutePrepResponse,
    PrepExecutionResponse,
    RecipeResponse,
)
from services import DietBudgetService, PrepScheduler
from app.exceptions import NotFoundError

router = APIRouter(prefix="/automated", tags=["Automated Prep"])
logger = logging.getLogger("trayprep.api.automated")

INVALID_MEAL_TIME = "Invalid mealTime. Must be breakfast, lunch, or dinner"


def _parse_meal_time(value: str) -> MealTime:
    try:
        meal_time = MealTime(value.lower())
    except ValueError:
        meal_time = None
    if meal_time not in PREP_MEAL_TIMES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_MEAL_TIME)
    return meal_time


@router.get("/diet-order/{patient_id}", response_model=DietOrderResponse)
def get_diet_order(patient_id: UUID, db: Session = Depends(get_db)):
    """
    Daily calorie limits of a patient plus calories already served today.

    Raises:
        404: If the patient has no diet order
    """
    try:
        return DietBudgetService(db).get_diet_order(patient_id)
    except NotFoundError as e:
        logger.warning(f"Diet order not found: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/available-meals/{patient_id}", response_model=AvailableRecipesResponse)
def get_available_meals(
    patient_id: UUID,
    category: Optional[ItemCategory] = Query(
        None, description="Only recipes of this category (Entrees, Sides, Desserts, Beverages)"
    ),
    db: Session = Depends(get_db),
):
    """
    Recipes that fit within the patient's remaining daily calorie budget,
    most calories first.

    Raises:
        404: If the patient has no diet order
    """
    try:
        recipes = DietBudgetService(db).get_available_recipes(patient_id, category)
    except NotFoundError as e:
        logger.warning(f"Diet order not found: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AvailableRecipesResponse(
        recipes=[RecipeResponse.model_validate(recipe) for recipe in recipes]
    )


@router.post("/execute-prep/{meal_time}", response_model=ExecutePrepResponse)
def execute_prep(meal_time: str, db: Session = Depends(get_db)):
    """
    Run the automated tray ordering for one meal.

    Creates tray orders for patients who have not ordered yet. Running the same
    meal twice on one day is a no-op that returns zero counts.

    Raises:
        400: If meal_time is not breakfast, lunch or dinner
        500: If the run could not be claimed or recorded
    """
    slot = _parse_meal_time(meal_time)
    try:
        result = PrepScheduler(db).run(slot)
    except Exception as e:
        logger.exception(f"Prep run for {slot.value} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )
    logger.info(
        f"Prep run for {slot.value}: {result.orders_created} orders, "
        f"{len(result.errors)} errors"
    )
    return result


@router.get("/executions", response_model=List[PrepExecutionResponse])
def list_executions(
    meal_time: Optional[str] = Query(None, description="Filter by meal time"),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of runs"),
    db: Session = Depends(get_db),
):
    """History of prep runs, newest first"""
    slot = _parse_meal_time(meal_time) if meal_time else None
    return PrepScheduler(db).list_executions(slot, limit)
