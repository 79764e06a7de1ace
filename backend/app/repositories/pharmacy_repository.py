"""
Pharmacy & Branch Repositories
"""
from sqlalchemy.orm import Session

from app.repositories.base import BaseRepository
from app.models.pharmacy import Pharmacy
from app.models.branch import Branch


class PharmacyRepository(BaseRepository[Pharmacy]):

    def __init__(self, db: Session):
        super().__init__(Pharmacy, db)


class BranchRepository(BaseRepository[Branch]):

    def __init__(self, db: Session):
        super().__init__(Branch, db)
