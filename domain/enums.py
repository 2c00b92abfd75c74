"""
Domain enums for TrayPrep.
Contains all enumeration types used across the domain models.
"""

import enum


class MealTime(str, enum.Enum):
    """Meal slots a tray order can be scheduled for"""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


# Slots the automated prep run handles; snacks are only ordered by hand.
PREP_MEAL_TIMES = (MealTime.BREAKFAST, MealTime.LUNCH, MealTime.DINNER)


class ItemCategory(str, enum.Enum):
    """Recipe categories used to fill a tray"""

    ENTREES = "Entrees"
    SIDES = "Sides"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"


class ExecutionStatus(str, enum.Enum):
    """Lifecycle of a prep execution record"""

    RUNNING = "running"
    COMPLETED = "completed"
