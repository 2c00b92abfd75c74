"""
Patient and diet order models.
"""

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    ForeignKey,
    Integer,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from domain.models.database import Base


class Patient(Base):
    """A patient receiving trays"""

    __tablename__ = "patient"

    patient_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    diet_order_link = relationship(
        "PatientDietOrder",
        back_populates="patient",
        uselist=False,
        cascade="all, delete-orphan",
    )
    tray_orders = relationship(
        "TrayOrder", back_populates="patient", cascade="all, delete-orphan"
    )


class DietOrder(Base):
    """Named daily calorie policy shared by many patients"""

    __tablename__ = "diet_order"

    diet_order_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    minimum_calories = Column(Integer)
    maximum_calories = Column(Integer)  # NULL means unbounded

    patient_links = relationship("PatientDietOrder", back_populates="diet_order")


class PatientDietOrder(Base):
    """Active diet order for a patient (at most one per patient)"""

    __tablename__ = "patient_diet_order"

    patient_diet_order_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(
        Uuid,
        ForeignKey("patient.patient_id", ondelete="CASCADE"),
        nullable=False,
    )
    diet_order_id = Column(
        Uuid,
        ForeignKey("diet_order.diet_order_id", ondelete="CASCADE"),
        nullable=False,
    )

    patient = relationship("Patient", back_populates="diet_order_link")
    diet_order = relationship("DietOrder", back_populates="patient_links")

    __table_args__ = (
        UniqueConstraint("patient_id", name="uq_patient_diet_order_patient"),
    )
