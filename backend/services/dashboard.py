"""
BOQ dashboard client

Host-side counterpart of the REST API: owns the item list of one project,
the user's selection and the last error message. Every mutation is sent,
awaited, then followed by a refetch. A failed call only sets ``error``;
items, totals and selection keep their previous values. Nothing is retried.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from config import Config
from database.category_store import CategoryStore
from models.boq_models import BOQItem, ViewFilters, ViewModel
from services.boq_service import recompute
from services.grouping import SelectionSet, filter_grouped, group_by_category

logger = logging.getLogger(__name__)

BOQ_URL = "/api/boq"


class DashboardError(Exception):
    """A call failed; the message is meant for the user"""


class BOQDashboard:

    def __init__(self, project_id: str, http: Optional[httpx.Client] = None,
                 category_cache: Optional[CategoryStore] = None):
        self.project_id = project_id
        self.http = http or httpx.Client(
            base_url=Config.API_BASE_URL,
            timeout=Config.API_TIMEOUT_SECONDS
        )
        self.category_cache = category_cache or CategoryStore()
        self.items: List[BOQItem] = []
        self.section_totals: Dict[str, Dict] = {}
        self.selection = SelectionSet()
        self.error: Optional[str] = None

    # ================================================================
    # HTTP plumbing
    # ================================================================
    def _request(self, method: str, url: str, failure: str, **kwargs) -> Dict:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise DashboardError(failure) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = self._error_message(data) or failure
            logger.warning(f"{method} {url} returned {response.status_code}: {message}")
            raise DashboardError(message)
        return data

    @staticmethod
    def _error_message(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        detail = data.get("detail", data.get("error"))
        if isinstance(detail, dict):
            return detail.get("error")
        if isinstance(detail, str):
            return detail
        return None

    def dismiss_error(self):
        self.error = None

    # ================================================================
    # Fetch
    # ================================================================
    def fetch_items(self) -> bool:
        try:
            data = self._request("GET", BOQ_URL, "Failed to fetch BOQ",
                                 params={"project_id": self.project_id})
        except DashboardError as e:
            self.error = str(e)
            return False

        self.items = [BOQItem.from_record(r) for r in data.get("items") or []]
        self.section_totals = data.get("sectionTotals") or {}
        return True

    # ================================================================
    # Mutations
    # ================================================================
    def save_item(self, form: Dict, item_id: Optional[str] = None) -> bool:
        """Create a new item, or update ``item_id`` with the form fields"""
        if not (form.get("item_name") or "").strip() or not (form.get("unit") or "").strip():
            self.error = "Item name and unit are required"
            return False

        try:
            if item_id:
                self._request("PATCH", BOQ_URL, "Save failed", json={"id": item_id, **form})
            else:
                self._request("POST", BOQ_URL, "Save failed",
                              json={"project_id": self.project_id, **form})
        except DashboardError as e:
            self.error = str(e)
            return False
        return self.fetch_items()

    def inline_update(self, item_id: str, field: str, value: Any) -> bool:
        """Edit a single field and merge the server's recalculated item"""
        try:
            data = self._request("PATCH", BOQ_URL, "Update failed",
                                 json={"id": item_id, field: value})
        except DashboardError as e:
            self.error = str(e)
            return False

        returned = data.get("item")
        for index, item in enumerate(self.items):
            if item.id != item_id:
                continue
            merged = item.to_dict()
            merged.update(returned if returned else {field: value})
            self.items[index] = BOQItem.from_record(merged)
        return True

    def delete_item(self, item_id: str, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        try:
            self._request("DELETE", BOQ_URL, "Delete failed", params={"id": item_id})
        except DashboardError as e:
            self.error = str(e)
            return False
        return self.fetch_items()

    def _bulk(self, body: Dict, failure: str) -> bool:
        try:
            self._request("PUT", BOQ_URL, failure, json={
                "project_id": self.project_id,
                "item_ids": self.selection.ids,
                **body
            })
        except DashboardError as e:
            self.error = str(e)
            return False
        self.selection.clear()
        return self.fetch_items()

    def import_items(self, rows: List[Dict], category: Optional[str] = None) -> bool:
        """Send parsed sheet rows; a non-empty ``category`` overrides every row's"""
        if not rows:
            return False
        category = (category or "").strip()
        if category:
            rows = [{**row, "category": category} for row in rows]
        try:
            self._request("POST", f"{BOQ_URL}/import", "Import failed",
                          json={"project_id": self.project_id, "items": rows})
        except DashboardError as e:
            self.error = str(e)
            return False
        return self.fetch_items()

    def bulk_update_category(self, category: str) -> bool:
        category = (category or "").strip()
        if not category or not len(self.selection):
            return False
        return self._bulk({"action": "update_category", "category": category},
                          "Failed to update categories")

    def bulk_update_status(self, status: str) -> bool:
        if not len(self.selection):
            return False
        return self._bulk({"action": "update_status", "status": status},
                          "Failed to update status")

    # ================================================================
    # Categories and views
    # ================================================================
    def categories(self) -> List[str]:
        return self.category_cache.merge(self.project_id, [item.category for item in self.items])

    def add_category(self, name: str) -> List[str]:
        self.category_cache.add(self.project_id, name)
        return self.categories()

    def grouped(self, column_filters: Optional[Dict[str, str]] = None) -> Dict[str, List[BOQItem]]:
        groups, _ = group_by_category(self.items)
        return filter_grouped(groups, column_filters)

    def selected_items(self) -> List[BOQItem]:
        return self.selection.selected_items(self.items)

    def view(self, inventory: Iterable, filters: Optional[ViewFilters] = None) -> ViewModel:
        return recompute(self.items, inventory, filters)
