"""Pytest configuration and fixtures."""

import copy
from typing import Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from api.routes import app, get_boq_service
from database.category_store import CategoryStore
from services.boq_service import BOQService


class InMemoryBOQRepository:
    """Same interface as SupabaseClient, backed by dicts."""

    def __init__(self):
        self.items: Dict[str, Dict] = {}
        self.inventory: List[Dict] = []
        self.po_lines: List[Dict] = []
        self.bulk_calls = 0
        self.insert_calls = 0
        self._next_id = 1

    def add_item(self, project_id: str = "project-1", **fields) -> Dict:
        record = {
            "project_id": project_id,
            "category": None,
            "item_name": "Item",
            "unit": "Nos",
            "quantity": 0,
            "ordered_quantity": 0,
            "rate": 0,
            "status": "draft",
            "order_status": "pending",
            "sort_order": 0,
        }
        record.update(fields)
        if "amount" not in fields:
            record["amount"] = (record["quantity"] or 0) * (record["rate"] or 0)
        return self.insert_boq_item(record)

    def add_inventory(self, item_name, quantity, project_id: str = "project-1"):
        self.inventory.append({"project_id": project_id, "item_name": item_name, "quantity": quantity})

    def link_po(self, boq_item_id: str, po_id: str, po_number: str, status: str = "sent"):
        self.po_lines.append({
            "boq_item_id": boq_item_id,
            "po": {"id": po_id, "po_number": po_number, "status": status},
        })

    # SupabaseClient interface

    def get_boq_items(self, project_id, limit, offset=0, section=None):
        rows = [
            copy.deepcopy(r) for r in self.items.values()
            if r["project_id"] == project_id
            and (not section or section == "all" or r.get("category") == section)
        ]
        rows.sort(key=lambda r: r.get("sort_order") or 0)
        return rows[offset:offset + limit]

    def get_boq_item(self, item_id):
        record = self.items.get(item_id)
        return copy.deepcopy(record) if record else None

    def insert_boq_item(self, record):
        item_id = f"item-{self._next_id}"
        self._next_id += 1
        self.items[item_id] = {**record, "id": item_id}
        return copy.deepcopy(self.items[item_id])

    def insert_boq_items(self, records):
        self.insert_calls += 1
        return [self.insert_boq_item(r) for r in records]

    def get_max_sort_order(self, project_id):
        orders = [r.get("sort_order") or 0 for r in self.items.values() if r["project_id"] == project_id]
        return max(orders, default=0)

    def update_boq_item(self, item_id, updates):
        self.items[item_id].update(updates)
        return copy.deepcopy(self.items[item_id])

    def delete_boq_item(self, item_id):
        self.items.pop(item_id, None)

    def bulk_update_boq_items(self, project_id, item_ids, updates):
        self.bulk_calls += 1
        count = 0
        for item_id in item_ids:
            record = self.items.get(item_id)
            if record and record["project_id"] == project_id:
                record.update(updates)
                count += 1
        return count

    def bulk_delete_boq_items(self, project_id, item_ids):
        self.bulk_calls += 1
        doomed = [
            i for i in item_ids
            if i in self.items and self.items[i]["project_id"] == project_id
        ]
        for item_id in doomed:
            del self.items[item_id]
        return len(doomed)

    def get_linked_pos(self, item_ids):
        linked = {}
        for line in self.po_lines:
            if line["boq_item_id"] in item_ids:
                linked.setdefault(line["boq_item_id"], []).append(dict(line["po"]))
        return linked

    def get_inventory_items(self, project_id):
        return [
            {"item_name": r["item_name"], "quantity": r["quantity"]}
            for r in self.inventory if r["project_id"] == project_id
        ]


@pytest.fixture
def repo() -> InMemoryBOQRepository:
    return InMemoryBOQRepository()


@pytest.fixture
def category_store(tmp_path) -> Generator[CategoryStore, None, None]:
    store = CategoryStore(str(tmp_path / "categories.db"))
    yield store
    store.close()


@pytest.fixture
def service(repo, category_store) -> BOQService:
    return BOQService(source=repo, category_cache=category_store)


@pytest.fixture
def client(service) -> Generator[TestClient, None, None]:
    """Test client with the BOQ service overridden; startup is not run."""
    app.dependency_overrides[get_boq_service] = lambda: service
    test_client = TestClient(app, raise_server_exceptions=False)
    yield test_client
    app.dependency_overrides.clear()
