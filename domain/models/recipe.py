"""
Recipe catalogue model.
"""

from sqlalchemy import Column, Text, Integer, Uuid, CheckConstraint, Enum as SQLEnum
import uuid

from domain.models.database import Base
from domain.enums import ItemCategory


class Recipe(Base):
    """A single tray item (entree, side, dessert or beverage)"""

    __tablename__ = "recipe"

    recipe_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    category = Column(SQLEnum(ItemCategory), nullable=False)
    calories = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("calories >= 0", name="ck_recipe_calories_nonneg"),
    )
