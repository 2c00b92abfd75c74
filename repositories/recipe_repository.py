"""
Recipe Repository - Data access for the recipe catalogue
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Recipe
from domain.enums import ItemCategory


class RecipeRepository(BaseRepository[Recipe]):
    """Repository for recipe data access"""

    def __init__(self, db: Session):
        super().__init__(db, Recipe)

    def get_by_id(self, recipe_id: UUID) -> Optional[Recipe]:
        """Get recipe by ID"""
        return self.db.query(Recipe).filter(Recipe.recipe_id == recipe_id).first()

    def find_available(
        self,
        max_calories: Optional[int] = None,
        category: Optional[ItemCategory] = None,
    ) -> List[Recipe]:
        """
        Get recipes at or under a calorie ceiling, most calories first.

        Args:
            max_calories: Ceiling, or None for no ceiling
            category: Optional category filter

        Returns:
            List of recipes sorted by calories descending
        """
        query = self.db.query(Recipe)

        if max_calories is not None:
            query = query.filter(Recipe.calories <= max_calories)
        if category is not None:
            query = query.filter(Recipe.category == category)

        return query.order_by(Recipe.calories.desc(), Recipe.name).all()
