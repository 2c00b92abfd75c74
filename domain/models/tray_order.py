"""
Tray orders and prep execution records.
"""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Uuid,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from domain.models.database import Base
from domain.enums import MealTime, ExecutionStatus


class TrayOrder(Base):
    """A committed meal for one patient and one meal slot"""

    __tablename__ = "tray_order"

    tray_order_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(
        Uuid,
        ForeignKey("patient.patient_id", ondelete="CASCADE"),
        nullable=False,
    )
    meal_time = Column(SQLEnum(MealTime), nullable=False)
    scheduled_for = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="tray_orders")
    recipes = relationship(
        "TrayOrderRecipe",
        back_populates="tray_order",
        cascade="all, delete-orphan",
        order_by="TrayOrderRecipe.position",
    )


class TrayOrderRecipe(Base):
    """Recipe line on a tray; the same recipe may appear more than once"""

    __tablename__ = "tray_order_recipe"

    tray_order_recipe_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tray_order_id = Column(
        Uuid,
        ForeignKey("tray_order.tray_order_id", ondelete="CASCADE"),
        nullable=False,
    )
    recipe_id = Column(Uuid, ForeignKey("recipe.recipe_id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    tray_order = relationship("TrayOrder", back_populates="recipes")
    recipe = relationship("Recipe")


class PrepExecution(Base):
    """
    Audit record of one automated prep run.

    The row is inserted when a run claims its slot and completed when the run
    finishes; (meal_time, execution_day) is unique so only one run per slot
    and day can ever hold it.
    """

    __tablename__ = "prep_execution"

    prep_execution_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    meal_time = Column(SQLEnum(MealTime), nullable=False)
    execution_day = Column(Date, nullable=False)
    executed_at = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(ExecutionStatus), nullable=False, default=ExecutionStatus.RUNNING
    )
    lease_expires_at = Column(DateTime)
    patients_processed = Column(Integer, nullable=False, default=0)
    orders_created = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint(
            "meal_time", "execution_day", name="uq_prep_execution_slot_day"
        ),
    )
