from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Date,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from app.database import Base


class Medication(Base):
    __tablename__ = "medications"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_medications_current_stock_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_medications_reorder_level_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_medications_unit_price_non_negative"),
        CheckConstraint(
            "selling_price IS NULL OR selling_price >= 0",
            name="ck_medications_selling_price_non_negative",
        ),
        Index("ix_medications_pharmacy_expiry", "pharmacy_id", "expiry_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    pharmacy_id = Column(Integer, ForeignKey("pharmacies.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    current_stock = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=10)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    selling_price = Column(Numeric(12, 2), nullable=True)
    expiry_date = Column(Date, nullable=False)
    is_shelved = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    pharmacy = relationship("Pharmacy", back_populates="medications")
