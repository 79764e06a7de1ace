import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "standard")
os.environ.setdefault("ENABLE_REQUEST_LOGGING", "false")

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models import Branch, BranchInventory, Medication, Pharmacy

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db) -> TestClient:
    def _override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def pharmacy(db) -> Pharmacy:
    pharmacy = Pharmacy(name="Green Cross Pharmacy", phone="+234 803 123 4567")
    db.add(pharmacy)
    db.commit()
    db.refresh(pharmacy)
    return pharmacy


def seed_medications(db, pharmacy: Pharmacy, today: date) -> dict:
    """
    Amoxicillin expired yesterday, Paracetamol nearly empty, Vitamin C out of
    stock, Ibuprofen expiring in 20 days, Zinc healthy, Old Stock unshelved.
    """
    meds = {
        "amoxicillin": Medication(
            pharmacy_id=pharmacy.id, name="Amoxicillin 500mg", current_stock=10, reorder_level=5,
            unit_price=Decimal("100"), selling_price=None, expiry_date=today - timedelta(days=1),
        ),
        "paracetamol": Medication(
            pharmacy_id=pharmacy.id, name="Paracetamol", current_stock=1, reorder_level=10,
            unit_price=Decimal("20"), selling_price=Decimal("30"), expiry_date=today + timedelta(days=365),
        ),
        "vitamin_c": Medication(
            pharmacy_id=pharmacy.id, name="Vitamin C", current_stock=0, reorder_level=4,
            unit_price=Decimal("15"), selling_price=None, expiry_date=today + timedelta(days=10),
        ),
        "ibuprofen": Medication(
            pharmacy_id=pharmacy.id, name="Ibuprofen", current_stock=100, reorder_level=10,
            unit_price=Decimal("50"), selling_price=Decimal("80"), expiry_date=today + timedelta(days=20),
        ),
        "zinc": Medication(
            pharmacy_id=pharmacy.id, name="Zinc", current_stock=100, reorder_level=10,
            unit_price=Decimal("40"), selling_price=None, expiry_date=today + timedelta(days=365),
        ),
        "old_stock": Medication(
            pharmacy_id=pharmacy.id, name="Old Stock", current_stock=5, reorder_level=10,
            unit_price=Decimal("40"), selling_price=None, expiry_date=today - timedelta(days=90),
            is_shelved=False,
        ),
    }
    db.add_all(meds.values())
    db.commit()
    for med in meds.values():
        db.refresh(med)
    return meds


def seed_branch(db, pharmacy: Pharmacy, meds: dict) -> Branch:
    """Lekki branch: Paracetamol out of stock there, Ibuprofen at 3 of 10."""
    branch = Branch(pharmacy_id=pharmacy.id, name="Lekki")
    db.add(branch)
    db.commit()
    db.refresh(branch)
    db.add_all([
        BranchInventory(
            branch_id=branch.id, medication_id=meds["paracetamol"].id, current_stock=0, reorder_level=5,
        ),
        BranchInventory(
            branch_id=branch.id, medication_id=meds["ibuprofen"].id, current_stock=3, reorder_level=10,
        ),
    ])
    db.commit()
    return branch


@pytest.fixture
def today() -> date:
    return date.today()


@pytest.fixture
def medications(db, pharmacy, today) -> dict:
    return seed_medications(db, pharmacy, today)


@pytest.fixture
def branch(db, pharmacy, medications) -> Branch:
    return seed_branch(db, pharmacy, medications)
