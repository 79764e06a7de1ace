from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.core.exceptions import InvalidInventorySnapshotException
from app.schemas.alert import BranchInventoryItem, InventoryItem
from app.services.alert_engine import (
    BRANCH_SCOPE,
    count_alerts,
    day_difference,
    generate_alerts,
    priority_rank,
    resolve_scope,
)

NOW = datetime(2025, 1, 5, 10, 30)
TODAY = NOW.date()


def _item(item_id: str = "42", **overrides) -> InventoryItem:
    fields = {
        "id": item_id,
        "name": f"Drug {item_id}",
        "current_stock": 100,
        "reorder_level": 10,
        "unit_cost": Decimal("100"),
        "selling_price": None,
        "expiry_date": TODAY + timedelta(days=365),
    }
    fields.update(overrides)
    return InventoryItem(**fields)


def _by_id(alerts):
    return {a.id: a for a in alerts}


def test_expired_item_yields_single_high_expiry_alert():
    alerts = generate_alerts(
        [_item(current_stock=10, reorder_level=5, expiry_date=TODAY - timedelta(days=1))], NOW,
    )

    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.id == "expiry-42"
    assert alert.type == "expiry"
    assert alert.priority == "high"
    assert alert.days_until_expiry == -1
    assert alert.value_at_risk == Decimal("1000")
    assert alert.suggested_discount_percent is None
    assert alert.title == "🚨 Expired Stock"
    assert "removed from shelves immediately" in alert.message


def test_expiring_today_counts_as_expired():
    alert = generate_alerts([_item(expiry_date=TODAY)], NOW)[0]

    assert alert.days_until_expiry == 0
    assert alert.title == "🚨 Expired Stock"


@pytest.mark.parametrize(
    "days, priority, discount, title",
    [
        (1, "high", 35, "🚨 Expiring This Week"),
        (7, "high", 35, "🚨 Expiring This Week"),
        (8, "medium", 20, "⚠️ Expiring Soon"),
        (30, "medium", 20, "⚠️ Expiring Soon"),
        (31, "low", 10, "Expiry Watch"),
        (60, "low", 10, "Expiry Watch"),
    ],
)
def test_expiry_buckets(days, priority, discount, title):
    alerts = generate_alerts([_item(expiry_date=TODAY + timedelta(days=days))], NOW)

    assert len(alerts) == 1
    assert alerts[0].priority == priority
    assert alerts[0].suggested_discount_percent == discount
    assert alerts[0].title == title
    assert alerts[0].days_until_expiry == days


def test_no_expiry_alert_beyond_sixty_days():
    assert generate_alerts([_item(expiry_date=TODAY + timedelta(days=61))], NOW) == []


def test_expiring_this_week_message_uses_singular_day():
    one_day = generate_alerts([_item(expiry_date=TODAY + timedelta(days=1))], NOW)[0]
    three_days = generate_alerts([_item(expiry_date=TODAY + timedelta(days=3))], NOW)[0]

    assert "expires in 1 day." in one_day.message
    assert "expires in 3 days." in three_days.message


def test_value_at_risk_prefers_selling_price_and_falls_back_on_zero():
    priced = generate_alerts(
        [_item(current_stock=20, selling_price=Decimal("150"), expiry_date=TODAY + timedelta(days=10))], NOW,
    )[0]
    zero_priced = generate_alerts(
        [_item(current_stock=20, selling_price=Decimal("0"), expiry_date=TODAY + timedelta(days=10))], NOW,
    )[0]

    assert priced.value_at_risk == Decimal("3000")
    assert zero_priced.value_at_risk == Decimal("2000")


def test_expiry_is_skipped_for_empty_stock_by_default():
    alerts = generate_alerts(
        [_item(current_stock=0, reorder_level=5, expiry_date=TODAY - timedelta(days=3))], NOW,
    )

    assert [a.type for a in alerts] == ["out_of_stock"]


def test_expiry_gate_can_be_disabled():
    alerts = generate_alerts(
        [_item(current_stock=0, reorder_level=5, expiry_date=TODAY - timedelta(days=3))],
        NOW,
        gate_expiry_on_stock=False,
    )

    by_id = _by_id(alerts)
    assert set(by_id) == {"expiry-42", "stock-42"}
    assert by_id["expiry-42"].value_at_risk == Decimal("0")


def test_out_of_stock_never_reports_low_stock():
    alert = generate_alerts([_item(current_stock=0, reorder_level=8)], NOW)[0]

    assert alert.id == "stock-42"
    assert alert.type == "out_of_stock"
    assert alert.priority == "high"
    assert alert.current_stock == 0
    assert alert.estimated_days_until_empty == 0
    assert alert.suggested_reorder_quantity == 24
    assert alert.suggested_action == "Create purchase order urgently."


def test_near_empty_low_stock_is_high_priority():
    alert = generate_alerts([_item(current_stock=1, reorder_level=10)], NOW)[0]

    assert alert.type == "low_stock"
    assert alert.priority == "high"
    assert alert.title == "📉 Critical Low Stock"
    assert alert.estimated_days_until_empty == 1
    assert alert.suggested_reorder_quantity == 20
    assert alert.message == "Drug 42 has only 1 units left. Estimated empty in 1 days."


@pytest.mark.parametrize(
    "stock, priority, days_left",
    [
        (2, "high", 1),
        (3, "medium", 2),
        (5, "medium", 3),
        (6, "low", 3),
        (10, "low", 5),
    ],
)
def test_low_stock_priority_follows_percentage_of_reorder_level(stock, priority, days_left):
    alert = generate_alerts([_item(current_stock=stock, reorder_level=10)], NOW)[0]

    assert alert.priority == priority
    assert alert.estimated_days_until_empty == days_left
    assert alert.title == ("📉 Critical Low Stock" if priority == "high" else "📊 Low Stock")


def test_zero_reorder_level_only_alerts_when_empty():
    assert generate_alerts([_item(current_stock=3, reorder_level=0)], NOW) == []

    alert = generate_alerts([_item(current_stock=0, reorder_level=0)], NOW)[0]
    assert alert.type == "out_of_stock"
    assert alert.suggested_reorder_quantity == 0


def test_healthy_item_produces_no_alerts():
    assert generate_alerts([_item(current_stock=100, reorder_level=10)], NOW) == []


def test_item_can_raise_expiry_and_stock_alerts_together():
    alerts = generate_alerts(
        [_item(current_stock=4, reorder_level=10, expiry_date=TODAY + timedelta(days=5))], NOW,
    )

    assert sorted(a.id for a in alerts) == ["expiry-42", "stock-42"]


def test_alerts_are_ranked_by_priority_and_keep_input_order_within_a_priority():
    items = [
        _item("a", current_stock=9, reorder_level=10),
        _item("b", current_stock=10, reorder_level=5, expiry_date=TODAY - timedelta(days=2)),
        _item("c", current_stock=20, reorder_level=5, expiry_date=TODAY + timedelta(days=15)),
        _item("d", current_stock=1, reorder_level=10),
        _item("e", current_stock=0, reorder_level=2),
    ]

    alerts = generate_alerts(items, NOW)

    assert [a.id for a in alerts] == ["expiry-b", "stock-d", "stock-e", "expiry-c", "stock-a"]
    ranks = [priority_rank(a.priority) for a in alerts]
    assert ranks == sorted(ranks)


def test_at_most_one_alert_per_class_per_item():
    items = [
        _item(str(i), current_stock=i % 4, reorder_level=3, expiry_date=TODAY + timedelta(days=i * 5 - 10))
        for i in range(20)
    ]

    alerts = generate_alerts(items, NOW)

    ids = [a.id for a in alerts]
    assert len(ids) == len(set(ids))


def test_generation_is_idempotent():
    items = [
        _item("a", current_stock=2, reorder_level=10, expiry_date=TODAY + timedelta(days=3)),
        _item("b", current_stock=0, reorder_level=10),
    ]

    first = generate_alerts(items, NOW)
    second = generate_alerts(items, NOW)

    assert first == second
    assert [a.model_dump_json() for a in first] == [a.model_dump_json() for a in second]


def test_empty_snapshot_yields_no_alerts_and_zero_counts():
    alerts = generate_alerts([], NOW)

    assert alerts == []
    assert count_alerts(alerts).model_dump() == {
        "total": 0, "high": 0, "medium": 0, "low": 0, "expiry": 0, "low_stock": 0,
    }


def test_count_alerts_groups_by_priority_and_type():
    items = [
        _item("a", current_stock=10, reorder_level=5, expiry_date=TODAY - timedelta(days=1)),
        _item("b", current_stock=1, reorder_level=10),
        _item("c", current_stock=0, reorder_level=10),
        _item("d", current_stock=50, expiry_date=TODAY + timedelta(days=45)),
    ]

    counts = count_alerts(generate_alerts(items, NOW))

    assert counts.total == 4
    assert counts.high == 3
    assert counts.medium == 0
    assert counts.low == 1
    assert counts.expiry == 2
    assert counts.low_stock == 2


def test_iso_string_expiry_dates_are_accepted():
    alert = generate_alerts([_item(expiry_date="2025-01-10")], NOW)[0]

    assert alert.days_until_expiry == 5
    assert alert.expiry_date == TODAY + timedelta(days=5)


def test_malformed_expiry_date_propagates():
    with pytest.raises(ValueError):
        generate_alerts([_item(expiry_date="31/02/2025")], NOW)


def test_day_difference_ignores_time_of_day():
    assert day_difference(TODAY + timedelta(days=1), datetime(2025, 1, 5, 23, 59)) == 1
    assert day_difference(TODAY, TODAY) == 0
    assert day_difference("2025-01-01", NOW) == -4


def test_branch_scope_reads_branch_stock_figures():
    item = BranchInventoryItem(
        id="7",
        name="Ciprofloxacin",
        current_stock=200,
        reorder_level=10,
        unit_cost=Decimal("40"),
        expiry_date=TODAY + timedelta(days=20),
        branch_id="3",
        branch_stock=2,
        branch_reorder_level=10,
    )

    by_id = _by_id(generate_alerts([item], NOW, scope=BRANCH_SCOPE))

    assert by_id["stock-7"].type == "low_stock"
    assert by_id["stock-7"].current_stock == 2
    assert by_id["stock-7"].suggested_action == "Create purchase order or request stock transfer."
    assert by_id["expiry-7"].value_at_risk == Decimal("80")


def test_branch_expiry_alert_reports_branch_stock():
    branch_item = BranchInventoryItem(
        id="8", name="Amoxicillin", current_stock=40, reorder_level=5,
        expiry_date=TODAY + timedelta(days=3), branch_id="3", branch_stock=6, branch_reorder_level=2,
    )

    branch_alert = _by_id(generate_alerts([branch_item], NOW, scope=BRANCH_SCOPE))["expiry-8"]
    pharmacy_alert = _by_id(generate_alerts([branch_item], NOW))["expiry-8"]

    assert branch_alert.current_stock == 6
    assert pharmacy_alert.current_stock is None


def test_branch_scope_out_of_stock_wording():
    item = BranchInventoryItem(
        id="7", name="Ciprofloxacin", current_stock=200, reorder_level=10,
        expiry_date=TODAY - timedelta(days=5), branch_id="3", branch_stock=0, branch_reorder_level=4,
    )

    alerts = generate_alerts([item], NOW, scope=BRANCH_SCOPE)

    assert len(alerts) == 1
    assert alerts[0].message == "Ciprofloxacin is completely out of stock in this branch. Reorder or transfer!"
    assert alerts[0].suggested_reorder_quantity == 12


def test_branch_scope_rejects_items_without_branch_figures():
    with pytest.raises(InvalidInventorySnapshotException):
        generate_alerts([_item()], NOW, scope=BRANCH_SCOPE)


def test_resolve_scope_rejects_unknown_names():
    assert resolve_scope("branch") is BRANCH_SCOPE
    with pytest.raises(ValueError):
        resolve_scope("warehouse")
