"""
BOQ vs Order vs Inventory reconciliation

Compares planned (BOQ) quantities against ordered quantities and received
stock. Everything here is a pure function of its inputs: no I/O, no
mutation of the items or inventory passed in, and no exceptions for
missing or malformed numbers (they count as zero).
"""
import logging
from typing import Dict, Iterable, List, Union

from models.boq_models import (
    BOQItem,
    ComparisonRow,
    ComparisonStats,
    InventoryRecord,
    FULLY_RECEIVED,
    ON_TRACK,
    OVER_ORDERED,
    PARTIALLY_RECEIVED,
    PENDING,
    PENDING_ORDER,
)

logger = logging.getLogger(__name__)

ItemLike = Union[BOQItem, Dict]
InventoryLike = Union[InventoryRecord, Dict]


def normalize_name(name) -> str:
    """Join key between BOQ items and inventory: lower-cased and trimmed"""
    if name is None:
        return ""
    return str(name).lower().strip()


def as_item(item: ItemLike) -> BOQItem:
    return item if isinstance(item, BOQItem) else BOQItem.from_record(item)


def as_inventory(record: InventoryLike) -> InventoryRecord:
    if isinstance(record, InventoryRecord):
        return record
    return InventoryRecord.from_record(record)


def build_inventory_lookup(inventory: Iterable[InventoryLike]) -> Dict[str, float]:
    """Sum received quantity per normalized item name"""
    lookup: Dict[str, float] = {}
    for raw in inventory:
        record = as_inventory(raw)
        name = normalize_name(record.item_name)
        if not name:
            continue
        lookup[name] = lookup.get(name, 0.0) + record.quantity
    return lookup


def classify_status(item: BOQItem, boq_qty: float, ordered_qty: float) -> str:
    # Only confirmed items are flagged as waiting for an order; an
    # under-ordered draft is still on track.
    if ordered_qty > boq_qty:
        return OVER_ORDERED
    if ordered_qty < boq_qty and item.status == "confirmed":
        return PENDING_ORDER
    return ON_TRACK


def classify_received(received_qty: float, ordered_qty: float) -> str:
    if received_qty >= ordered_qty and ordered_qty > 0:
        return FULLY_RECEIVED
    if received_qty > 0:
        return PARTIALLY_RECEIVED
    return PENDING


def reconcile_item(item: ItemLike, lookup: Dict[str, float]) -> ComparisonRow:
    """Derive the comparison figures for a single BOQ item"""
    item = as_item(item)

    boq_qty = item.quantity
    ordered_qty = item.ordered_quantity
    received_qty = lookup.get(normalize_name(item.item_name), 0.0)

    difference = ordered_qty - boq_qty
    variance = (difference / boq_qty) * 100 if boq_qty > 0 else 0.0

    return ComparisonRow(
        item=item,
        boq_qty=boq_qty,
        ordered_qty=ordered_qty,
        received_qty=received_qty,
        difference=difference,
        variance=variance,
        status=classify_status(item, boq_qty, ordered_qty),
        received_status=classify_received(received_qty, ordered_qty),
        boq_amount=item.amount,
        # BOQ rate stands in for the purchase order rate
        ordered_amount=ordered_qty * item.rate,
    )


def reconcile(items: Iterable[ItemLike], inventory: Iterable[InventoryLike]) -> List[ComparisonRow]:
    """
    Reconcile BOQ items against an inventory snapshot

    Returns one row per item, in input order.
    """
    lookup = build_inventory_lookup(inventory)
    rows = [reconcile_item(item, lookup) for item in items]
    logger.debug(f"Reconciled {len(rows)} items against {len(lookup)} inventory names")
    return rows


def compute_stats(rows: Iterable[ComparisonRow]) -> ComparisonStats:
    stats = ComparisonStats()
    for row in rows:
        stats.total_items += 1
        stats.total_boq_value += row.boq_amount
        stats.total_ordered_value += row.ordered_amount
        if row.status == OVER_ORDERED:
            stats.over_ordered_count += 1
    return stats
