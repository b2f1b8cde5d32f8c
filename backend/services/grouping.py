"""
Grouping, filtering and selection over BOQ items or comparison rows

Functions accept anything with a ``get(key)`` accessor (``BOQItem``,
``ComparisonRow`` or a plain dict), so the same helpers serve the BOQ grid
and the comparison view.
"""
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from models.boq_models import ITEM_STATUSES, UNCATEGORIZED, CategoryTotals, to_number


def category_key(item) -> str:
    return item.get("category") or UNCATEGORIZED


def group_by_category(items: Iterable) -> Tuple[Dict[str, List], Dict[str, CategoryTotals]]:
    """
    Stable partition by category

    Returns (groups, totals): members per category in input order, and
    ``{count, amount}`` per category.
    """
    groups: Dict[str, List] = {}
    totals: Dict[str, CategoryTotals] = {}
    for item in items:
        cat = category_key(item)
        groups.setdefault(cat, []).append(item)
        cat_totals = totals.setdefault(cat, CategoryTotals())
        cat_totals.count += 1
        cat_totals.amount += to_number(item.get("amount"))
    return groups, totals


def section_totals(items: Iterable) -> Dict[str, CategoryTotals]:
    return group_by_category(items)[1]


def status_counts(items: Iterable) -> Dict[str, int]:
    counts = {status: 0 for status in ITEM_STATUSES}
    for item in items:
        status = item.get("status")
        if status in counts:
            counts[status] += 1
    return counts


def _stringify(value) -> str:
    # Falsy values (None, 0, "") never match a filter
    if not value:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_filters(item, filters: Mapping[str, str]) -> bool:
    for key, needle in filters.items():
        if not needle or not needle.strip():
            continue
        if needle.lower() not in _stringify(item.get(key)).lower():
            return False
    return True


def apply_filters(items: Iterable, filters: Optional[Mapping[str, str]]) -> List:
    """Keep items matching every non-empty column filter (case-insensitive substring)"""
    if not filters:
        return list(items)
    return [item for item in items if matches_filters(item, filters)]


def filter_grouped(groups: Mapping[str, List], filters: Optional[Mapping[str, str]]) -> Dict[str, List]:
    """Filter each category; categories left empty are dropped"""
    filtered = {}
    for cat, members in groups.items():
        matching = apply_filters(members, filters)
        if matching:
            filtered[cat] = matching
    return filtered


def apply_semantic_filter(rows: Iterable, mode: str = "all") -> List:
    """all | variance (difference != 0) | completed (ordered >= boq)"""
    if mode == "all":
        return list(rows)
    if mode == "variance":
        return [row for row in rows if row.difference != 0]
    if mode == "completed":
        return [row for row in rows if row.ordered_qty >= row.boq_qty]
    raise ValueError(f"Unknown filter mode: '{mode}'")


def search_rows(rows: Iterable, term: str) -> List:
    if not term:
        return list(rows)
    term = term.lower()
    return [row for row in rows if term in (row.get("item_name") or "").lower()]


class SelectionSet:
    """
    Ids targeted by a bulk action (category change, status change, proposal)

    Insertion ordered. A partially selected category is only a visual
    state; toggling it selects all of its members.
    """

    def __init__(self, ids: Optional[Iterable[str]] = None):
        self._ids: Dict[str, None] = dict.fromkeys(ids or [])

    def __contains__(self, item_id) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def clear(self):
        self._ids.clear()

    def toggle_item(self, item_id: str):
        if item_id in self._ids:
            del self._ids[item_id]
        else:
            self._ids[item_id] = None

    def toggle_category(self, groups: Mapping[str, List], category: str):
        member_ids = [item.get("id") for item in groups.get(category, [])]
        if member_ids and all(i in self._ids for i in member_ids):
            for i in member_ids:
                self._ids.pop(i, None)
        else:
            for i in member_ids:
                self._ids.setdefault(i, None)

    def toggle_all(self, groups: Mapping[str, List]):
        visible = [item.get("id") for members in groups.values() for item in members]
        if len(self._ids) == len(visible):
            self.clear()
        else:
            self._ids = dict.fromkeys(visible)

    def is_category_selected(self, groups: Mapping[str, List], category: str) -> bool:
        member_ids = [item.get("id") for item in groups.get(category, [])]
        return bool(member_ids) and all(i in self._ids for i in member_ids)

    def is_category_indeterminate(self, groups: Mapping[str, List], category: str) -> bool:
        member_ids = [item.get("id") for item in groups.get(category, [])]
        some = any(i in self._ids for i in member_ids)
        return some and not self.is_category_selected(groups, category)

    def selected_items(self, items: Iterable) -> List:
        return [item for item in items if item.get("id") in self._ids]
