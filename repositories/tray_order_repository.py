"""
Tray Order Repository - Data access for committed tray orders
"""

from typing import List, Optional, Sequence
from uuid import UUID
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import func

from repositories.base import BaseRepository
from domain.models import TrayOrder, TrayOrderRecipe, Recipe
from domain.enums import MealTime


class TrayOrderRepository(BaseRepository[TrayOrder]):
    """Repository for tray order data access"""

    def __init__(self, db: Session):
        super().__init__(db, TrayOrder)

    def get_by_id(self, tray_order_id: UUID) -> Optional[TrayOrder]:
        """Get tray order by ID"""
        return (
            self.db.query(TrayOrder)
            .filter(TrayOrder.tray_order_id == tray_order_id)
            .first()
        )

    def get_by_patient(
        self, patient_id: UUID, meal_time: Optional[MealTime] = None
    ) -> List[TrayOrder]:
        """Get a patient's tray orders, earliest first"""
        query = self.db.query(TrayOrder).filter(TrayOrder.patient_id == patient_id)
        if meal_time is not None:
            query = query.filter(TrayOrder.meal_time == meal_time)
        return query.order_by(TrayOrder.scheduled_for).all()

    def sum_calories_between(
        self, patient_id: UUID, start: datetime, end: datetime
    ) -> int:
        """Total recipe calories on a patient's trays scheduled within [start, end]"""
        total = (
            self.db.query(func.coalesce(func.sum(Recipe.calories), 0))
            .select_from(TrayOrder)
            .join(TrayOrderRecipe, TrayOrderRecipe.tray_order_id == TrayOrder.tray_order_id)
            .join(Recipe, Recipe.recipe_id == TrayOrderRecipe.recipe_id)
            .filter(
                TrayOrder.patient_id == patient_id,
                TrayOrder.scheduled_for >= start,
                TrayOrder.scheduled_for <= end,
            )
            .scalar()
        )
        return int(total or 0)

    def exists_for_slot(
        self, patient_id: UUID, meal_time: MealTime, start: datetime, end: datetime
    ) -> bool:
        """Check whether the patient already has a tray for this slot in [start, end]"""
        row = (
            self.db.query(TrayOrder.tray_order_id)
            .filter(
                TrayOrder.patient_id == patient_id,
                TrayOrder.meal_time == meal_time,
                TrayOrder.scheduled_for >= start,
                TrayOrder.scheduled_for <= end,
            )
            .first()
        )
        return row is not None

    def create_tray_order(
        self,
        patient_id: UUID,
        scheduled_for: datetime,
        meal_time: MealTime,
        recipe_ids: Sequence[UUID],
    ) -> TrayOrder:
        """
        Create a tray order and all of its recipe lines in one transaction.

        Either the order and every line are committed, or nothing is.
        """
        tray_order = TrayOrder(
            patient_id=patient_id,
            scheduled_for=scheduled_for,
            meal_time=meal_time,
            recipes=[
                TrayOrderRecipe(recipe_id=recipe_id, position=position)
                for position, recipe_id in enumerate(recipe_ids)
            ],
        )
        try:
            self.db.add(tray_order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(tray_order)
        return tray_order
