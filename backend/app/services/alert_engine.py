"""
Alert Engine — expiry and stock alert generation over an inventory snapshot.

Pure transform: items + clock in, ranked alerts out. No persistence, no
delivery, no hidden caches; callers recompute whenever their snapshot changes.
One engine serves both the pharmacy-wide and the branch-scoped views through
an ``AlertScope`` that names which stock figures to read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from math import ceil
from typing import Iterable, List, Optional, Union

from app.core.exceptions import InvalidInventorySnapshotException
from app.schemas.alert import Alert, AlertCounts, InventoryItem

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# Rough consumption heuristic, not a demand forecast.
ASSUMED_DAILY_SALES_UNITS = 2
OUT_OF_STOCK_REORDER_MULTIPLIER = 3
LOW_STOCK_REORDER_MULTIPLIER = 2


@dataclass(frozen=True)
class AlertScope:
    name: str
    stock_field: str
    reorder_field: str
    out_of_stock_message: str
    out_of_stock_action: str
    low_stock_action: str
    expiry_reports_stock: bool = False


PHARMACY_SCOPE = AlertScope(
    name="pharmacy",
    stock_field="current_stock",
    reorder_field="reorder_level",
    out_of_stock_message="{name} is completely out of stock. Reorder immediately!",
    out_of_stock_action="Create purchase order urgently.",
    low_stock_action="Create purchase order.",
)

BRANCH_SCOPE = AlertScope(
    name="branch",
    stock_field="branch_stock",
    reorder_field="branch_reorder_level",
    out_of_stock_message="{name} is completely out of stock in this branch. Reorder or transfer!",
    out_of_stock_action="Create purchase order or request stock transfer.",
    low_stock_action="Create purchase order or request stock transfer.",
    expiry_reports_stock=True,
)

SCOPES = {scope.name: scope for scope in (PHARMACY_SCOPE, BRANCH_SCOPE)}


@dataclass(frozen=True)
class ExpiryBucket:
    max_days: int
    priority: str
    title: str
    message: str
    suggested_action: str
    suggested_discount_percent: Optional[int] = None


# First match wins; anything past the last bucket raises no expiry alert.
EXPIRY_BUCKETS = (
    ExpiryBucket(
        max_days=0,
        priority="high",
        title="🚨 Expired Stock",
        message="{name} has expired and must be removed from shelves immediately.",
        suggested_action="Remove from inventory immediately. Log for disposal.",
    ),
    ExpiryBucket(
        max_days=7,
        priority="high",
        title="🚨 Expiring This Week",
        message="{name} expires in {days} {day_word}. Apply discount to clear stock.",
        suggested_action="Apply a 30-40% discount immediately to clear before expiry.",
        suggested_discount_percent=35,
    ),
    ExpiryBucket(
        max_days=30,
        priority="medium",
        title="⚠️ Expiring Soon",
        message="{name} expires in {days} days. Consider promotional pricing.",
        suggested_action="Apply a 20% discount to encourage sales.",
        suggested_discount_percent=20,
    ),
    ExpiryBucket(
        max_days=60,
        priority="low",
        title="Expiry Watch",
        message="{name} will expire in {days} days. Monitor sales velocity.",
        suggested_action="Keep on watchlist. Consider 10% discount if stock is high.",
        suggested_discount_percent=10,
    ),
)


def resolve_scope(name: str) -> AlertScope:
    try:
        return SCOPES[name]
    except KeyError:
        raise ValueError(f"Unknown alert scope '{name}'. Expected one of: {', '.join(SCOPES)}") from None


def parse_expiry_date(value: Union[date, datetime, str]) -> date:
    """Coerce an expiry value to a calendar date. Malformed strings raise ``ValueError``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def day_difference(expiry_date: Union[date, datetime, str], now: Union[date, datetime]) -> int:
    """Whole calendar days from ``now`` until ``expiry_date``; negative once expired."""
    today = now.date() if isinstance(now, datetime) else now
    return (parse_expiry_date(expiry_date) - today).days


def priority_rank(priority: str) -> int:
    return PRIORITY_ORDER[priority]


def effective_price(item: InventoryItem) -> Decimal:
    return Decimal(item.selling_price or item.unit_cost or 0)


def classify_expiry(days_until_expiry: int) -> Optional[ExpiryBucket]:
    for bucket in EXPIRY_BUCKETS:
        if days_until_expiry <= bucket.max_days:
            return bucket
    return None


def low_stock_priority(stock: int, reorder_level: int) -> str:
    stock_percent = stock / reorder_level * 100
    if stock_percent <= 25:
        return "high"
    if stock_percent <= 50:
        return "medium"
    return "low"


def estimate_days_until_empty(stock: int) -> int:
    return ceil(stock / ASSUMED_DAILY_SALES_UNITS)


def _read_level(item: InventoryItem, field: str, scope: AlertScope) -> int:
    value = getattr(item, field, None)
    if value is None:
        raise InvalidInventorySnapshotException(
            f"Item {item.id} has no '{field}' value required by the {scope.name} scope",
            details={"item_id": item.id, "field": field, "scope": scope.name},
        )
    return int(value)


def _expiry_alert(
    item: InventoryItem,
    stock: int,
    now: Union[date, datetime],
    scope: AlertScope,
) -> Optional[Alert]:
    expiry = parse_expiry_date(item.expiry_date)
    days = day_difference(expiry, now)
    bucket = classify_expiry(days)
    if bucket is None:
        return None

    return Alert(
        id=f"expiry-{item.id}",
        type="expiry",
        priority=bucket.priority,
        title=bucket.title,
        message=bucket.message.format(
            name=item.name, days=days, day_word="day" if days == 1 else "days",
        ),
        product_name=item.name,
        product_id=item.id,
        value_at_risk=effective_price(item) * stock,
        expiry_date=expiry,
        days_until_expiry=days,
        current_stock=stock if scope.expiry_reports_stock else None,
        suggested_action=bucket.suggested_action,
        suggested_discount_percent=bucket.suggested_discount_percent,
    )


def _stock_alert(
    item: InventoryItem,
    stock: int,
    reorder_level: int,
    scope: AlertScope,
) -> Optional[Alert]:
    if stock == 0:
        return Alert(
            id=f"stock-{item.id}",
            type="out_of_stock",
            priority="high",
            title="📉 Out of Stock",
            message=scope.out_of_stock_message.format(name=item.name),
            product_name=item.name,
            product_id=item.id,
            current_stock=0,
            suggested_action=scope.out_of_stock_action,
            suggested_reorder_quantity=reorder_level * OUT_OF_STOCK_REORDER_MULTIPLIER,
            estimated_days_until_empty=0,
        )

    if stock > reorder_level:
        return None

    # stock > 0 here, so reorder_level > 0 as well.
    priority = low_stock_priority(stock, reorder_level)
    days_left = estimate_days_until_empty(stock)
    return Alert(
        id=f"stock-{item.id}",
        type="low_stock",
        priority=priority,
        title="📉 Critical Low Stock" if priority == "high" else "📊 Low Stock",
        message=f"{item.name} has only {stock} units left. Estimated empty in {days_left} days.",
        product_name=item.name,
        product_id=item.id,
        current_stock=stock,
        suggested_action=scope.low_stock_action,
        suggested_reorder_quantity=reorder_level * LOW_STOCK_REORDER_MULTIPLIER,
        estimated_days_until_empty=days_left,
    )


def generate_alerts(
    items: Iterable[InventoryItem],
    now: Union[date, datetime],
    scope: AlertScope = PHARMACY_SCOPE,
    gate_expiry_on_stock: bool = True,
) -> List[Alert]:
    """
    Evaluate every item for one expiry-class and one stock-class alert and
    return them ranked high → medium → low. Equal priorities keep input order.
    """
    generated: List[Alert] = []
    evaluated = 0

    for item in items:
        evaluated += 1
        stock = _read_level(item, scope.stock_field, scope)
        reorder_level = _read_level(item, scope.reorder_field, scope)

        if stock > 0 or not gate_expiry_on_stock:
            expiry_alert = _expiry_alert(item, stock, now, scope)
            if expiry_alert is not None:
                generated.append(expiry_alert)

        stock_alert = _stock_alert(item, stock, reorder_level, scope)
        if stock_alert is not None:
            generated.append(stock_alert)

    ranked = sorted(generated, key=lambda alert: priority_rank(alert.priority))
    logger.debug(
        "alerts_generated",
        extra={"scope": scope.name, "items_evaluated": evaluated, "alerts": len(ranked)},
    )
    return ranked


def count_alerts(alerts: Iterable[Alert]) -> AlertCounts:
    counts = AlertCounts()
    for alert in alerts:
        counts.total += 1
        setattr(counts, alert.priority, getattr(counts, alert.priority) + 1)
        if alert.type == "expiry":
            counts.expiry += 1
        else:
            counts.low_stock += 1
    return counts
