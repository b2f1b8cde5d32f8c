"""
Request bodies accepted by the BOQ API
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ItemStatus = Literal["draft", "confirmed", "completed"]
OrderStatus = Literal["pending", "ordered", "received", "cancelled"]
BulkAction = Literal["update_category", "update_status", "delete"]
FilterMode = Literal["all", "variance", "completed"]


class BOQItemCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    project_id: str = Field(min_length=1)
    category: Optional[str] = None
    sub_category: Optional[str] = None
    item_name: str = Field(min_length=1)
    description: Optional[str] = None
    unit: str = Field(min_length=1)
    quantity: float = Field(default=0, ge=0)
    ordered_quantity: float = Field(default=0, ge=0)
    rate: float = Field(default=0, ge=0)
    status: ItemStatus = "draft"
    order_status: OrderStatus = "pending"
    item_type: Optional[str] = None
    source: Optional[str] = None
    sort_order: Optional[int] = None
    remarks: Optional[str] = None


class BOQItemUpdate(BaseModel):
    """Partial update; only the fields present in the body are written"""
    model_config = ConfigDict(extra="ignore")

    category: Optional[str] = None
    sub_category: Optional[str] = None
    item_name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    unit: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
    ordered_quantity: Optional[float] = Field(default=None, ge=0)
    rate: Optional[float] = Field(default=None, ge=0)
    amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[ItemStatus] = None
    order_status: Optional[OrderStatus] = None
    item_type: Optional[str] = None
    source: Optional[str] = None
    sort_order: Optional[int] = None
    remarks: Optional[str] = None


class BulkRequest(BaseModel):
    action: BulkAction
    project_id: str = Field(min_length=1)
    item_ids: List[str]
    category: Optional[str] = None
    status: Optional[ItemStatus] = None


class InventoryItemIn(BaseModel):
    item_name: Optional[str] = None
    quantity: Optional[float] = None


class CompareRequest(BaseModel):
    project_id: str = Field(min_length=1)
    inventory_items: Optional[List[InventoryItemIn]] = None
    filter: FilterMode = "all"
    search: str = ""
    column_filters: Dict[str, str] = Field(default_factory=dict)
    category: Optional[str] = None
    status: str = "all"


class CategoryRequest(BaseModel):
    project_id: str = Field(min_length=1)
    name: str


class ImportRow(BaseModel):
    """One parsed sheet row; blank cells take the import defaults"""
    model_config = ConfigDict(extra="ignore")

    category: str = "Uncategorized"
    item_name: str = Field(min_length=1)
    description: str = ""
    unit: str = "Nos"
    quantity: float = Field(default=0, ge=0)
    rate: float = Field(default=0, ge=0)
    item_type: str = "material"
    source: str = "bought_out"


class ImportRequest(BaseModel):
    project_id: str = Field(min_length=1)
    items: List[ImportRow]
