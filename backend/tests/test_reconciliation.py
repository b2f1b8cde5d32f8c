"""Tests for the BOQ vs order vs inventory reconciliation engine."""

import math

import pytest

from models.boq_models import BOQItem, InventoryRecord
from services.reconciliation import (
    build_inventory_lookup,
    compute_stats,
    normalize_name,
    reconcile,
    reconcile_item,
)


def make_item(**fields):
    record = {"id": "item-1", "item_name": "Cement", "unit": "Kg"}
    record.update(fields)
    return record


class TestScenarios:
    """Worked examples from the comparison view."""

    def test_over_ordered_without_inventory(self):
        item = make_item(quantity=100, ordered_quantity=120, rate=10, status="confirmed")
        [row] = reconcile([item], [])

        assert row.difference == 20
        assert row.variance == pytest.approx(20)
        assert row.status == "over_ordered"
        assert row.received_qty == 0
        assert row.received_status == "pending"

    def test_pending_order_fully_received(self):
        item = make_item(quantity=50, ordered_quantity=30, rate=5, status="confirmed")
        [row] = reconcile([item], [{"item_name": "Cement", "quantity": 30}])

        assert row.difference == -20
        assert row.variance == pytest.approx(-40)
        assert row.status == "pending_order"
        assert row.received_qty == 30
        assert row.received_status == "fully_received"

    def test_zero_quantities(self):
        [row] = reconcile([make_item(quantity=0, ordered_quantity=0)], [])

        assert row.variance == 0
        assert row.status == "on_track"


class TestVariance:

    @pytest.mark.parametrize("ordered", [0, 5, 1000])
    def test_zero_boq_quantity_never_divides(self, ordered):
        [row] = reconcile([make_item(quantity=0, ordered_quantity=ordered)], [])
        assert row.variance == 0
        assert math.isfinite(row.variance)

    def test_missing_numbers_default_to_zero(self):
        item = {"id": "x", "item_name": "Sand", "quantity": None, "rate": "abc"}
        [row] = reconcile([item], [])

        assert row.boq_qty == 0
        assert row.ordered_qty == 0
        assert row.ordered_amount == 0
        assert row.boq_amount == 0
        assert row.variance == 0


class TestStatusClassification:

    def test_over_order_wins_for_confirmed_items(self):
        [row] = reconcile([make_item(quantity=10, ordered_quantity=11, status="confirmed")], [])
        assert row.status == "over_ordered"

    def test_under_ordered_draft_is_on_track(self):
        [row] = reconcile([make_item(quantity=10, ordered_quantity=2, status="draft")], [])
        assert row.status == "on_track"

    def test_under_ordered_completed_is_on_track(self):
        [row] = reconcile([make_item(quantity=10, ordered_quantity=2, status="completed")], [])
        assert row.status == "on_track"

    def test_exact_order_is_on_track(self):
        [row] = reconcile([make_item(quantity=10, ordered_quantity=10, status="confirmed")], [])
        assert row.status == "on_track"


class TestReceivedStatus:

    def test_no_inventory_match_is_pending(self):
        item = make_item(quantity=10, ordered_quantity=10, item_name="Steel")
        [row] = reconcile([item], [{"item_name": "Cement", "quantity": 50}])

        assert row.received_qty == 0
        assert row.received_status == "pending"

    def test_partially_received(self):
        item = make_item(quantity=10, ordered_quantity=10)
        [row] = reconcile([item], [{"item_name": "cement", "quantity": 4}])
        assert row.received_status == "partially_received"

    def test_received_without_order_is_partial(self):
        item = make_item(quantity=10, ordered_quantity=0)
        [row] = reconcile([item], [{"item_name": "Cement", "quantity": 4}])
        assert row.received_status == "partially_received"

    def test_over_received_is_fully_received(self):
        item = make_item(quantity=10, ordered_quantity=5)
        [row] = reconcile([item], [{"item_name": "Cement", "quantity": 8}])
        assert row.received_status == "fully_received"


class TestInventoryLookup:

    def test_names_are_normalized(self):
        assert normalize_name("  Portland CEMENT ") == "portland cement"
        assert normalize_name(None) == ""

    def test_deliveries_are_summed(self):
        lookup = build_inventory_lookup([
            {"item_name": "Cement", "quantity": 10},
            {"item_name": " cement ", "quantity": 5},
            {"item_name": "Sand", "quantity": 2},
        ])
        assert lookup == {"cement": 15, "sand": 2}

    def test_blank_names_are_skipped(self):
        lookup = build_inventory_lookup([
            {"item_name": "   ", "quantity": 10},
            {"item_name": None, "quantity": 5},
            {"quantity": 1},
        ])
        assert lookup == {}

    def test_match_ignores_case_and_whitespace(self):
        item = make_item(item_name=" Cement  ", quantity=10, ordered_quantity=10)
        [row] = reconcile([item], [InventoryRecord(item_name="CEMENT", quantity=10)])
        assert row.received_qty == 10

    def test_inventory_is_not_mutated(self):
        inventory = [{"item_name": " Cement ", "quantity": "7"}]
        reconcile([make_item()], inventory)
        assert inventory == [{"item_name": " Cement ", "quantity": "7"}]


class TestReconcile:

    def test_one_row_per_item_in_order(self):
        items = [make_item(id=f"item-{i}", item_name=f"Item {i}") for i in range(5)]
        rows = reconcile(items, [])
        assert [row.id for row in rows] == [f"item-{i}" for i in range(5)]

    def test_accepts_dataclasses(self):
        item = BOQItem(id="a", item_name="Tiles", quantity=4, ordered_quantity=2, rate=3, amount=12)
        row = reconcile_item(item, {"tiles": 1})

        assert row.item is item
        assert row.boq_amount == 12
        assert row.ordered_amount == 6
        assert row.received_status == "partially_received"

    def test_ordered_amount_uses_boq_rate(self):
        item = make_item(quantity=10, ordered_quantity=4, rate=25, amount=999)
        [row] = reconcile([item], [])
        assert row.boq_amount == 999
        assert row.ordered_amount == 100

    def test_wire_form_replaces_item_status(self):
        item = make_item(quantity=1, ordered_quantity=2, status="confirmed")
        data = reconcile([item], [])[0].to_dict()

        assert data["status"] == "over_ordered"
        assert data["itemStatus"] == "confirmed"
        assert data["boqQty"] == 1
        assert data["orderedQty"] == 2
        assert data["receivedStatus"] == "pending"


class TestStats:

    def test_totals(self):
        rows = reconcile([
            make_item(id="a", quantity=100, ordered_quantity=120, rate=10, amount=1000),
            make_item(id="b", quantity=50, ordered_quantity=30, rate=5, amount=250),
            make_item(id="c", quantity=5, ordered_quantity=9, rate=2, amount=10),
        ], [])
        stats = compute_stats(rows)

        assert stats.total_items == 3
        assert stats.total_boq_value == 1260
        assert stats.total_ordered_value == 1200 + 150 + 18
        assert stats.over_ordered_count == 2

    def test_empty(self):
        stats = compute_stats([])
        assert stats.to_dict() == {
            "totalBoqValue": 0,
            "totalOrderedValue": 0,
            "totalItems": 0,
            "overOrderedCount": 0,
        }
