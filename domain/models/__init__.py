"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.patient import Patient, DietOrder, PatientDietOrder
from domain.models.recipe import Recipe
from domain.models.tray_order import TrayOrder, TrayOrderRecipe, PrepExecution

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # Patient models
    "Patient",
    "DietOrder",
    "PatientDietOrder",
    # Recipe models
    "Recipe",
    # Tray models
    "TrayOrder",
    "TrayOrderRecipe",
    "PrepExecution",
]
