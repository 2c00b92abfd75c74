"""
Patient Repository - Data access for patients and their diet orders
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Patient, DietOrder, PatientDietOrder


class PatientRepository(BaseRepository[Patient]):
    """Repository for patient data access"""

    def __init__(self, db: Session):
        super().__init__(db, Patient)

    def get_by_id(self, patient_id: UUID) -> Optional[Patient]:
        """Get patient by ID"""
        return self.db.query(Patient).filter(Patient.patient_id == patient_id).first()

    def find_patients(self) -> List[Patient]:
        """Get every patient, oldest first"""
        return self.db.query(Patient).order_by(Patient.created_at, Patient.name).all()

    def find_diet_order_for_patient(self, patient_id: UUID) -> Optional[DietOrder]:
        """Get the diet order currently assigned to a patient"""
        return (
            self.db.query(DietOrder)
            .join(PatientDietOrder, PatientDietOrder.diet_order_id == DietOrder.diet_order_id)
            .filter(PatientDietOrder.patient_id == patient_id)
            .first()
        )
