from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal, Union
from datetime import date, datetime
from decimal import Decimal


AlertType = Literal["expiry", "low_stock", "out_of_stock"]
AlertPriority = Literal["high", "medium", "low"]
AlertScopeName = Literal["pharmacy", "branch"]


class InventoryItem(BaseModel):
    """Read-only inventory snapshot row handed to the alert engine."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    current_stock: int = Field(..., ge=0)
    reorder_level: int = Field(..., ge=0)
    unit_cost: Decimal = Decimal("0")
    selling_price: Optional[Decimal] = None
    expiry_date: Union[date, str]


class BranchInventoryItem(InventoryItem):
    """Inventory row with the branch-scoped stock figures alongside the global ones."""

    branch_id: str
    branch_stock: int = Field(..., ge=0)
    branch_reorder_level: int = Field(..., ge=0)


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: AlertType
    priority: AlertPriority
    title: str
    message: str
    product_name: str
    product_id: str
    value_at_risk: Optional[Decimal] = None
    expiry_date: Optional[date] = None
    days_until_expiry: Optional[int] = None
    current_stock: Optional[int] = None
    suggested_discount_percent: Optional[int] = None
    suggested_action: Optional[str] = None
    estimated_days_until_empty: Optional[int] = None
    suggested_reorder_quantity: Optional[int] = None


class AlertCounts(BaseModel):
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    expiry: int = 0
    low_stock: int = 0


class AlertSummary(BaseModel):
    scope: AlertScopeName
    pharmacy_id: Optional[str] = None
    branch_id: Optional[str] = None
    generated_at: datetime
    alerts: List[Alert]
    counts: AlertCounts


class AlertEvaluationRequest(BaseModel):
    scope: AlertScopeName = "pharmacy"
    now: Optional[datetime] = None
    gate_expiry_on_stock: Optional[bool] = None
    items: List[Union[BranchInventoryItem, InventoryItem]] = Field(default_factory=list, max_length=5000)


class DigestRequest(BaseModel):
    alerts: List[Alert] = Field(default_factory=list)
    phone: Optional[str] = Field(None, max_length=32)
    pharmacy_name: Optional[str] = Field(None, max_length=200)
    max_items_per_section: Optional[int] = Field(None, ge=1, le=500)
    now: Optional[datetime] = None


class AlertMessageResponse(BaseModel):
    message: str
    whatsapp_url: str
    phone: str
    alert_count: int = 1
