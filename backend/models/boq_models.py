"""
Data models for BOQ reconciliation
Simple dataclasses for clean data handling

Raw records coming from the database or the browser are loosely shaped
(optional fields, numbers as strings, nulls). ``BOQItem.from_record`` and
``InventoryRecord.from_record`` are the only places that coerce them, so
everything downstream can rely on plain floats and strings.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

UNCATEGORIZED = "Uncategorized"

ITEM_STATUSES = ("draft", "confirmed", "completed")
ORDER_STATUSES = ("pending", "ordered", "received", "cancelled")

# Comparison status
OVER_ORDERED = "over_ordered"
PENDING_ORDER = "pending_order"
ON_TRACK = "on_track"

# Received status
FULLY_RECEIVED = "fully_received"
PARTIALLY_RECEIVED = "partially_received"
PENDING = "pending"

FILTER_MODES = ("all", "variance", "completed")


def to_number(value: Any) -> float:
    """Coerce a loosely typed numeric value, falling back to 0.0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class BOQItem:
    """A planned bill-of-quantities line item"""
    id: str
    item_name: str = ""
    unit: str = ""
    project_id: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    description: Optional[str] = None
    quantity: float = 0.0
    ordered_quantity: float = 0.0
    rate: float = 0.0
    amount: float = 0.0
    status: str = "draft"
    order_status: str = "pending"
    item_type: Optional[str] = None
    source: Optional[str] = None
    sort_order: int = 0
    remarks: Optional[str] = None
    linked_pos: List[Dict] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Dict) -> "BOQItem":
        category = record.get("category")
        return cls(
            id=_text(record.get("id")),
            item_name=_text(record.get("item_name")),
            unit=_text(record.get("unit")),
            project_id=record.get("project_id"),
            category=category if category else None,
            sub_category=record.get("sub_category"),
            description=record.get("description"),
            quantity=to_number(record.get("quantity")),
            ordered_quantity=to_number(record.get("ordered_quantity")),
            rate=to_number(record.get("rate")),
            amount=to_number(record.get("amount")),
            status=record.get("status") or "draft",
            order_status=record.get("order_status") or "pending",
            item_type=record.get("item_type"),
            source=record.get("source"),
            sort_order=int(to_number(record.get("sort_order"))),
            remarks=record.get("remarks"),
            linked_pos=list(record.get("linked_pos") or []),
        )

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "category": self.category,
            "sub_category": self.sub_category,
            "item_name": self.item_name,
            "description": self.description,
            "unit": self.unit,
            "quantity": self.quantity,
            "ordered_quantity": self.ordered_quantity,
            "rate": self.rate,
            "amount": self.amount,
            "status": self.status,
            "order_status": self.order_status,
            "item_type": self.item_type,
            "source": self.source,
            "sort_order": self.sort_order,
            "remarks": self.remarks,
            "linked_pos": self.linked_pos,
        }


@dataclass
class InventoryRecord:
    """A received-stock entry; several records may share an item name"""
    item_name: Optional[str] = None
    quantity: float = 0.0

    @classmethod
    def from_record(cls, record: Dict) -> "InventoryRecord":
        name = record.get("item_name")
        return cls(
            item_name=None if name is None else str(name),
            quantity=to_number(record.get("quantity")),
        )


@dataclass
class ComparisonRow:
    """A BOQ item enriched with ordered / received reconciliation figures"""
    item: BOQItem
    boq_qty: float = 0.0
    ordered_qty: float = 0.0
    received_qty: float = 0.0
    difference: float = 0.0
    variance: float = 0.0
    status: str = ON_TRACK
    received_status: str = PENDING
    boq_amount: float = 0.0
    ordered_amount: float = 0.0

    # Wire names of the derived fields
    DERIVED_KEYS = {
        "boqQty": "boq_qty",
        "orderedQty": "ordered_qty",
        "receivedQty": "received_qty",
        "difference": "difference",
        "variance": "variance",
        "status": "status",
        "receivedStatus": "received_status",
        "boqAmount": "boq_amount",
        "orderedAmount": "ordered_amount",
    }

    @property
    def id(self) -> str:
        return self.item.id

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a derived field by wire name, then fall back to the item"""
        if key in self.DERIVED_KEYS:
            return getattr(self, self.DERIVED_KEYS[key])
        return self.item.get(key, default)

    def to_dict(self):
        data = self.item.to_dict()
        data["itemStatus"] = self.item.status
        for wire_name, attr in self.DERIVED_KEYS.items():
            data[wire_name] = getattr(self, attr)
        return data


@dataclass
class CategoryTotals:
    count: int = 0
    amount: float = 0.0

    def to_dict(self):
        return {"count": self.count, "amount": self.amount}


@dataclass
class ComparisonStats:
    """Project level summary of a reconciliation run"""
    total_boq_value: float = 0.0
    # Estimate from BOQ rate x ordered quantity, not the purchase order total
    total_ordered_value: float = 0.0
    total_items: int = 0
    over_ordered_count: int = 0

    def to_dict(self):
        return {
            "totalBoqValue": self.total_boq_value,
            "totalOrderedValue": self.total_ordered_value,
            "totalItems": self.total_items,
            "overOrderedCount": self.over_ordered_count,
        }


@dataclass
class ViewFilters:
    """Everything the user can narrow the comparison view with"""
    mode: str = "all"
    search: str = ""
    columns: Dict[str, str] = field(default_factory=dict)
    category: Optional[str] = None
    status: str = "all"


@dataclass
class ViewModel:
    rows: List[ComparisonRow] = field(default_factory=list)
    groups: Dict[str, List[ComparisonRow]] = field(default_factory=dict)
    section_totals: Dict[str, CategoryTotals] = field(default_factory=dict)
    stats: ComparisonStats = field(default_factory=ComparisonStats)
    filtered_amount: float = 0.0

    def to_dict(self):
        return {
            "rows": [row.to_dict() for row in self.rows],
            "groups": {
                cat: [row.id for row in members]
                for cat, members in self.groups.items()
            },
            "sectionTotals": {
                cat: totals.to_dict() for cat, totals in self.section_totals.items()
            },
            "stats": self.stats.to_dict(),
            "filteredAmount": self.filtered_amount,
        }
