from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from app.database import Base


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    pharmacy_id = Column(Integer, ForeignKey("pharmacies.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    is_main = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())

    pharmacy = relationship("Pharmacy", back_populates="branches")
    stock_levels = relationship("BranchInventory", back_populates="branch")


class BranchInventory(Base):
    __tablename__ = "branch_inventory"
    __table_args__ = (
        UniqueConstraint("branch_id", "medication_id", name="uq_branch_inventory_branch_medication"),
        CheckConstraint("current_stock >= 0", name="ck_branch_inventory_stock_non_negative"),
        CheckConstraint("reorder_level IS NULL OR reorder_level >= 0", name="ck_branch_inventory_reorder_level_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False, index=True)
    current_stock = Column(Integer, nullable=False, default=0)
    # NULL inherits the medication-level reorder threshold.
    reorder_level = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    branch = relationship("Branch", back_populates="stock_levels")
    medication = relationship("Medication")
