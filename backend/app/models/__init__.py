from app.models.pharmacy import Pharmacy
from app.models.medication import Medication
from app.models.branch import Branch, BranchInventory

__all__ = [
    "Pharmacy",
    "Medication",
    "Branch",
    "BranchInventory",
]
