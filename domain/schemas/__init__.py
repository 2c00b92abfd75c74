"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.prep_schemas import (
    RecipeResponse,
    AvailableRecipesResponse,
    DietOrderResponse,
    PrepError,
    ExecutePrepResponse,
    PrepExecutionResponse,
)

__all__ = [
    "RecipeResponse",
    "AvailableRecipesResponse",
    "DietOrderResponse",
    "PrepError",
    "ExecutePrepResponse",
    "PrepExecutionResponse",
]
