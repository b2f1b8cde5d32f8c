import logging
from typing import Dict, List, Optional
from supabase import create_client
from config import Config

logger = logging.getLogger(__name__)

LINKED_PO_SELECT = "boq_item_id, po:purchase_orders!po_line_items_po_id_fkey(id, po_number, status)"


class SupabaseClient:
    """Client for the project BOQ, purchase order and inventory tables in Supabase"""

    def __init__(self):
        self.client = create_client(Config.SUPABASE_URL, Config.SUPABASE_KEY)
        logger.info("Supabase client initialized")

    # ================================================================
    # BOQ items
    # ================================================================
    def get_boq_items(self, project_id: str, limit: int, offset: int = 0,
                      section: Optional[str] = None) -> List[Dict]:
        """Fetch one page of BOQ items, ordered like the grid shows them"""
        query = self.client.table("boq_items")\
            .select("*")\
            .eq("project_id", project_id)\
            .order("sort_order")\
            .order("category")\
            .order("created_at")

        if section and section != "all":
            query = query.eq("category", section)

        result = query.range(offset, offset + limit - 1).execute()
        return result.data or []

    def get_boq_item(self, item_id: str) -> Optional[Dict]:
        result = self.client.table("boq_items")\
            .select("*")\
            .eq("id", item_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def insert_boq_item(self, record: Dict) -> Dict:
        result = self.client.table("boq_items").insert(record).execute()
        logger.info(f"Inserted BOQ item {record.get('item_name')} for project {record.get('project_id')}")
        return result.data[0]

    def insert_boq_items(self, records: List[Dict]) -> List[Dict]:
        """Batch insert in a single request"""
        result = self.client.table("boq_items").insert(records).execute()
        logger.info(f"Inserted {len(result.data or [])} BOQ items")
        return result.data or []

    def get_max_sort_order(self, project_id: str) -> int:
        result = self.client.table("boq_items")\
            .select("sort_order")\
            .eq("project_id", project_id)\
            .order("sort_order", desc=True)\
            .limit(1)\
            .execute()
        if not result.data:
            return 0
        return result.data[0].get("sort_order") or 0

    def update_boq_item(self, item_id: str, updates: Dict) -> Dict:
        result = self.client.table("boq_items")\
            .update(updates)\
            .eq("id", item_id)\
            .execute()
        return result.data[0]

    def delete_boq_item(self, item_id: str):
        self.client.table("boq_items").delete().eq("id", item_id).execute()
        logger.info(f"Deleted BOQ item {item_id}")

    def bulk_update_boq_items(self, project_id: str, item_ids: List[str], updates: Dict) -> int:
        result = self.client.table("boq_items")\
            .update(updates)\
            .eq("project_id", project_id)\
            .in_("id", item_ids)\
            .execute()
        return len(result.data or [])

    def bulk_delete_boq_items(self, project_id: str, item_ids: List[str]) -> int:
        result = self.client.table("boq_items")\
            .delete()\
            .eq("project_id", project_id)\
            .in_("id", item_ids)\
            .execute()
        return len(result.data or [])

    # ================================================================
    # Purchase orders
    # ================================================================
    def get_linked_pos(self, item_ids: List[str]) -> Dict[str, List[Dict]]:
        """Purchase orders referencing each BOQ item, without duplicates"""
        if not item_ids:
            return {}

        result = self.client.table("po_line_items")\
            .select(LINKED_PO_SELECT)\
            .in_("boq_item_id", item_ids)\
            .execute()

        linked: Dict[str, List[Dict]] = {}
        for line in result.data or []:
            po = line.get("po")
            item_id = line.get("boq_item_id")
            if not item_id or not po:
                continue
            pos = linked.setdefault(item_id, [])
            if not any(p["id"] == po["id"] for p in pos):
                pos.append({
                    "id": po["id"],
                    "po_number": po.get("po_number"),
                    "status": po.get("status")
                })
        return linked

    # ================================================================
    # Inventory
    # ================================================================
    def get_inventory_items(self, project_id: str) -> List[Dict]:
        """Received stock entries for a project"""
        result = self.client.table("inventory_items")\
            .select("item_name, quantity")\
            .eq("project_id", project_id)\
            .execute()
        return result.data or []
