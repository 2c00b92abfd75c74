"""Services package - Business logic layer"""

from services.consumption_service import ConsumptionService
from services.diet_budget_service import DietBudgetService, adjusted_target
from services.meal_composer import MealComposer, MealPools, RandomRecipeSelector
from services.execution_guard import ExecutionGuard
from services.prep_service import PrepScheduler

# Note: helpers and schedule contain utility functions, not classes

__all__ = [
    "ConsumptionService",
    "DietBudgetService",
    "adjusted_target",
    "MealComposer",
    "MealPools",
    "RandomRecipeSelector",
    "ExecutionGuard",
    "PrepScheduler",
]
