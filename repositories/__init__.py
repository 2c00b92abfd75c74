"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.patient_repository import PatientRepository
from repositories.recipe_repository import RecipeRepository
from repositories.tray_order_repository import TrayOrderRepository
from repositories.prep_execution_repository import PrepExecutionRepository

__all__ = [
    "BaseRepository",
    "PatientRepository",
    "RecipeRepository",
    "TrayOrderRepository",
    "PrepExecutionRepository",
]
