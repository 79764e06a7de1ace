"""
Medication Repository — inventory snapshots for the alert engine
"""
from typing import List
from sqlalchemy.orm import Session

from app.repositories.base import BaseRepository
from app.models.medication import Medication
from app.models.branch import Branch, BranchInventory
from app.schemas.alert import InventoryItem, BranchInventoryItem


class MedicationRepository(BaseRepository[Medication]):

    def __init__(self, db: Session):
        super().__init__(Medication, db)

    def list_shelved(self, pharmacy_id: int) -> List[Medication]:
        return (
            self.db.query(Medication)
            .filter(Medication.pharmacy_id == pharmacy_id, Medication.is_shelved.is_(True))
            .order_by(Medication.id)
            .all()
        )

    def list_inventory_items(self, pharmacy_id: int) -> List[InventoryItem]:
        return [_to_inventory_item(med) for med in self.list_shelved(pharmacy_id)]

    def list_branch_inventory_items(self, branch: Branch) -> List[BranchInventoryItem]:
        # The main branch holds the central stock recorded on the medication itself.
        if branch.is_main:
            return [
                _to_branch_item(med, branch.id, med.current_stock, med.reorder_level)
                for med in self.list_shelved(branch.pharmacy_id)
            ]

        rows = (
            self.db.query(BranchInventory, Medication)
            .join(Medication, BranchInventory.medication_id == Medication.id)
            .filter(BranchInventory.branch_id == branch.id, Medication.is_shelved.is_(True))
            .order_by(Medication.id)
            .all()
        )
        return [
            _to_branch_item(
                med,
                branch.id,
                level.current_stock,
                level.reorder_level if level.reorder_level is not None else med.reorder_level,
            )
            for level, med in rows
        ]


def _to_inventory_item(med: Medication) -> InventoryItem:
    return InventoryItem(
        id=str(med.id),
        name=med.name,
        current_stock=med.current_stock or 0,
        reorder_level=med.reorder_level or 0,
        unit_cost=med.unit_price or 0,
        selling_price=med.selling_price,
        expiry_date=med.expiry_date,
    )


def _to_branch_item(med: Medication, branch_id: int, stock, reorder_level) -> BranchInventoryItem:
    return BranchInventoryItem(
        **_to_inventory_item(med).model_dump(),
        branch_id=str(branch_id),
        branch_stock=stock or 0,
        branch_reorder_level=reorder_level or 0,
    )
