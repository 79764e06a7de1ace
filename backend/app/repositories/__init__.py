# Repository Layer — Data Access (Repository Pattern, GoF)
from app.repositories.base import BaseRepository
from app.repositories.pharmacy_repository import PharmacyRepository, BranchRepository
from app.repositories.medication_repository import MedicationRepository

__all__ = [
    "BaseRepository",
    "PharmacyRepository",
    "BranchRepository",
    "MedicationRepository",
]
