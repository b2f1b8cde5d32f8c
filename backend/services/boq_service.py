import logging
from typing import Dict, Iterable, List, Optional
from pydantic import ValidationError
from config import Config
from database.supabase_client import SupabaseClient
from database.category_store import CategoryStore
from models.boq_models import BOQItem, ViewFilters, ViewModel
from models.schemas import BOQItemCreate, BOQItemUpdate, BulkRequest, ImportRequest
from services.reconciliation import reconcile, compute_stats
from services.grouping import (
    apply_filters,
    apply_semantic_filter,
    category_key,
    group_by_category,
    search_rows,
    section_totals,
    status_counts,
)

logger = logging.getLogger(__name__)

# Columns a partial update may not clear
NON_NULLABLE = ("item_name", "unit", "quantity", "ordered_quantity", "rate",
                "amount", "status", "order_status")


class BOQError(Exception):
    """Base error for BOQ operations"""


class BOQValidationError(BOQError):
    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class BOQNotFoundError(BOQError):
    pass


def recompute(items: Iterable, inventory: Iterable,
              filters: Optional[ViewFilters] = None) -> ViewModel:
    """
    Build the comparison view model from fresh inputs

    Pure: the host calls it again whenever items, inventory or filters
    change. Stats and section totals cover every item; rows and groups
    reflect the filters.
    """
    filters = filters or ViewFilters()

    rows = reconcile(items, inventory)
    stats = compute_stats(rows)
    totals = section_totals(rows)

    visible = rows
    if filters.category:
        visible = [row for row in visible if category_key(row) == filters.category]
    if filters.status and filters.status != "all":
        visible = [row for row in visible if row.item.status == filters.status]
    visible = search_rows(visible, filters.search)
    visible = apply_semantic_filter(visible, filters.mode)
    visible = apply_filters(visible, filters.columns)

    groups, _ = group_by_category(visible)

    return ViewModel(
        rows=visible,
        groups=groups,
        section_totals=totals,
        stats=stats,
        filtered_amount=sum(row.boq_amount for row in visible),
    )


class BOQService:
    """
    BOQ store for a project

    Key responsibilities:
    1. List, create, import, update and delete BOQ line items
    2. Validate payloads before anything reaches the database
    3. Keep amount in step with quantity and rate
    4. Reconcile items against received inventory
    5. Merge server categories with locally added ones
    """

    def __init__(self, source=None, category_cache: Optional[CategoryStore] = None):
        self.source = source or SupabaseClient()
        self.category_cache = category_cache or CategoryStore()
        logger.info("BOQ Service initialized")

    @staticmethod
    def validate_payload(schema, payload: Optional[Dict]):
        try:
            return schema.model_validate(payload or {})
        except ValidationError as e:
            details = [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            raise BOQValidationError("Validation failed", details=details) from e

    @staticmethod
    def _require_project(project_id: Optional[str]):
        if not project_id:
            raise BOQValidationError("project_id is required")

    def _get_existing(self, item_id: str) -> Dict:
        existing = self.source.get_boq_item(item_id)
        if not existing:
            raise BOQNotFoundError(f"Item not found: {item_id}")
        return existing

    # ================================================================
    # Queries
    # ================================================================
    def list_items(self, project_id: str, limit: Optional[int] = None,
                   offset: int = 0, section: Optional[str] = None) -> Dict:
        """One page of items with linked purchase orders and totals"""
        self._require_project(project_id)
        limit = limit or Config.BOQ_PAGE_LIMIT

        records = self.source.get_boq_items(project_id, limit, offset, section)
        linked = self.source.get_linked_pos([r["id"] for r in records])
        items = [
            BOQItem.from_record({**r, "linked_pos": linked.get(r["id"], [])})
            for r in records
        ]

        totals = section_totals(items)
        logger.info(f"Listed {len(items)} BOQ items for project {project_id}")

        return {
            "items": [item.to_dict() for item in items],
            "totalAmount": sum(item.amount for item in items),
            "statusCounts": status_counts(items),
            "totalItems": len(items),
            "sectionTotals": {cat: t.to_dict() for cat, t in totals.items()},
            "pagination": {"limit": limit, "offset": offset, "hasMore": len(items) == limit},
        }

    def get_all_items(self, project_id: str) -> List[BOQItem]:
        """Every item of a project, fetched page by page"""
        self._require_project(project_id)
        limit = Config.BOQ_PAGE_LIMIT
        offset = 0
        items: List[BOQItem] = []
        while True:
            page = self.source.get_boq_items(project_id, limit, offset)
            items.extend(BOQItem.from_record(r) for r in page)
            if len(page) < limit:
                return items
            offset += limit

    def compare(self, project_id: str, inventory: Optional[Iterable] = None,
                filters: Optional[ViewFilters] = None) -> ViewModel:
        """Reconcile a project's BOQ against supplied or stored inventory"""
        items = self.get_all_items(project_id)
        if inventory is None:
            inventory = self.source.get_inventory_items(project_id)
        view = recompute(items, inventory, filters)
        logger.info(
            f"Compared {view.stats.total_items} items for project {project_id}: "
            f"{view.stats.over_ordered_count} over ordered"
        )
        return view

    def categories(self, project_id: str) -> List[str]:
        items = self.get_all_items(project_id)
        return self.category_cache.merge(project_id, [item.category for item in items])

    # ================================================================
    # Mutations
    # ================================================================
    def create_item(self, payload: Dict) -> Dict:
        data = self.validate_payload(BOQItemCreate, payload)
        record = data.model_dump()
        if record.get("sort_order") is None:
            record.pop("sort_order", None)
        record["amount"] = data.quantity * data.rate

        created = self.source.insert_boq_item(record)
        return BOQItem.from_record(created).to_dict()

    def update_item(self, payload: Dict) -> Dict:
        """
        Partial update of a single item

        Amount is recalculated when quantity or rate change, unless the
        payload sets an amount explicitly.
        """
        payload = dict(payload or {})
        item_id = payload.pop("id", None)
        if not item_id:
            raise BOQValidationError("Item ID is required")

        existing = self._get_existing(item_id)
        updates = self.validate_payload(BOQItemUpdate, payload).model_dump(exclude_unset=True)

        cleared = [f for f in NON_NULLABLE if f in updates and updates[f] is None]
        if cleared:
            raise BOQValidationError(f"Fields cannot be empty: {', '.join(cleared)}")
        if not updates:
            raise BOQValidationError("No fields to update")

        if ("quantity" in updates or "rate" in updates) and "amount" not in updates:
            current = BOQItem.from_record(existing)
            quantity = updates.get("quantity", current.quantity)
            rate = updates.get("rate", current.rate)
            updates["amount"] = quantity * rate

        updated = self.source.update_boq_item(item_id, updates)
        logger.info(f"Updated BOQ item {item_id}: {', '.join(sorted(updates))}")
        return BOQItem.from_record(updated).to_dict()

    def delete_item(self, item_id: Optional[str]):
        if not item_id:
            raise BOQValidationError("Item ID is required")
        self._get_existing(item_id)
        self.source.delete_boq_item(item_id)

    def bulk_update(self, payload: Dict) -> Dict:
        """update_category | update_status | delete across selected items"""
        request = self.validate_payload(BulkRequest, payload)
        if not request.item_ids:
            raise BOQValidationError("item_ids must not be empty")

        if request.action == "update_category":
            category = (request.category or "").strip()
            if not category:
                raise BOQValidationError("category is required for update_category")
            count = self.source.bulk_update_boq_items(
                request.project_id, request.item_ids, {"category": category}
            )
            logger.info(f"Moved {count} items to category '{category}'")
            return {"success": True, "updated": count}

        if request.action == "update_status":
            if not request.status:
                raise BOQValidationError("status is required for update_status")
            count = self.source.bulk_update_boq_items(
                request.project_id, request.item_ids, {"status": request.status}
            )
            logger.info(f"Set status '{request.status}' on {count} items")
            return {"success": True, "updated": count}

        count = self.source.bulk_delete_boq_items(request.project_id, request.item_ids)
        logger.info(f"Deleted {count} items from project {request.project_id}")
        return {"success": True, "deleted": count}

    def import_items(self, payload: Dict) -> Dict:
        """
        Batch insert rows parsed from an uploaded sheet

        Rows land as draft / pending and are numbered after the project's
        current highest sort order.
        """
        request = self.validate_payload(ImportRequest, payload)

        sort_order = self.source.get_max_sort_order(request.project_id) + 1
        records = []
        for row in request.items:
            record = row.model_dump()
            record.update(
                project_id=request.project_id,
                status="draft",
                order_status="pending",
                sort_order=sort_order,
                amount=row.quantity * row.rate,
            )
            records.append(record)
            sort_order += 1

        inserted = self.source.insert_boq_items(records) if records else []
        total_amount = sum(r["amount"] for r in records)
        logger.info(f"Imported {len(inserted)} BOQ items into project {request.project_id}")

        return {
            "success": True,
            "imported_count": len(inserted),
            "total_amount": total_amount,
            "items": [BOQItem.from_record(r).to_dict() for r in inserted],
        }

    def add_category(self, project_id: str, name: str) -> List[str]:
        self._require_project(project_id)
        if not (name or "").strip():
            raise BOQValidationError("Category name is required")
        self.category_cache.add(project_id, name)
        return self.categories(project_id)
