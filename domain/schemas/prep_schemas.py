from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from domain.enums import ItemCategory, MealTime


class RecipeResponse(BaseModel):
    """Schema for a recipe offered to a patient"""

    recipe_id: UUID
    name: str
    category: ItemCategory
    calories: int = Field(..., ge=0)

    model_config = {"from_attributes": True}


class AvailableRecipesResponse(BaseModel):
    """Recipes fitting the patient's remaining daily budget, most calories first"""

    recipes: List[RecipeResponse]


class DietOrderResponse(BaseModel):
    """Daily calorie limits of a patient plus what was already served today"""

    minimum_calories: int = 0
    maximum_calories: Optional[int] = Field(
        None, description="Daily ceiling; null means the diet order is unbounded"
    )
    calories_consumed: int = 0

    def remaining_calories(self) -> Optional[int]:
        """Calories left for today, or None when there is no ceiling"""
        if self.maximum_calories is None:
            return None
        return self.maximum_calories - self.calories_consumed


class PrepError(BaseModel):
    """A patient that could not be served by a prep run"""

    patient_id: UUID
    error: str


class ExecutePrepResponse(BaseModel):
    """Summary returned by a prep run"""

    patients_processed: int = 0
    orders_created: int = 0
    errors: List[PrepError] = Field(default_factory=list)


class PrepExecutionResponse(ExecutePrepResponse):
    """Stored prep run, as returned by the history endpoint"""

    prep_execution_id: UUID
    executed_at: datetime
    meal_time: MealTime

    model_config = {"from_attributes": True}
