from typing import Optional
from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import logging
from services.boq_service import (
    BOQService,
    BOQNotFoundError,
    BOQValidationError,
)
from models.boq_models import ViewFilters
from models.schemas import CategoryRequest, CompareRequest
from config import Config

logger = logging.getLogger(__name__)

app = FastAPI(
    title="BOQ Reconciliation API",
    description="Bill of quantities store and BOQ vs order vs inventory comparison",
    version="1.0.0"
)

# CORS for React frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[BOQService] = None


def get_boq_service() -> BOQService:
    """Single BOQ service instance, created on first use"""
    global _service
    if _service is None:
        _service = BOQService()
    return _service


def _raise_for(e: Exception, action: str):
    if isinstance(e, BOQValidationError):
        logger.warning(f"API: {action} rejected - {e.message}")
        detail = {"error": e.message}
        if e.details:
            detail["details"] = e.details
        raise HTTPException(status_code=400, detail=detail)
    if isinstance(e, BOQNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    logger.error(f"API: {action} failed - {e}")
    raise HTTPException(status_code=500, detail=str(e))


@app.get("/")
def root():
    return {"status": "running", "service": "BOQ Reconciliation"}


@app.get("/api/boq")
def list_boq(project_id: Optional[str] = None, limit: Optional[int] = None,
             offset: int = 0, section: Optional[str] = None,
             service: BOQService = Depends(get_boq_service)):
    """Get BOQ items for a project with section totals"""
    try:
        return service.list_items(project_id, limit=limit, offset=offset, section=section)
    except Exception as e:
        _raise_for(e, "List BOQ")


@app.post("/api/boq", status_code=201)
def create_boq_item(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """Create a BOQ item"""
    try:
        return {"item": service.create_item(payload)}
    except Exception as e:
        _raise_for(e, "Create BOQ item")


@app.patch("/api/boq")
def update_boq_item(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """Update fields of a BOQ item; amount is recalculated"""
    try:
        return {"item": service.update_item(payload)}
    except Exception as e:
        _raise_for(e, "Update BOQ item")


@app.delete("/api/boq")
def delete_boq_item(id: Optional[str] = None, service: BOQService = Depends(get_boq_service)):
    """Delete a BOQ item"""
    try:
        service.delete_item(id)
        return {"success": True}
    except Exception as e:
        _raise_for(e, "Delete BOQ item")


@app.put("/api/boq")
def bulk_boq(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """Bulk category / status update or delete"""
    try:
        return service.bulk_update(payload)
    except Exception as e:
        _raise_for(e, "Bulk BOQ")


@app.post("/api/boq/import")
def import_boq(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """Bulk import rows parsed from a CSV / Excel sheet"""
    try:
        return service.import_items(payload)
    except Exception as e:
        _raise_for(e, "Import BOQ")


@app.post("/api/boq/compare")
def compare_boq(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """BOQ vs order vs inventory comparison"""
    try:
        request = service.validate_payload(CompareRequest, payload)
        inventory = None
        if request.inventory_items is not None:
            inventory = [i.model_dump() for i in request.inventory_items]
        filters = ViewFilters(
            mode=request.filter,
            search=request.search,
            columns=request.column_filters,
            category=request.category,
            status=request.status,
        )
        return service.compare(request.project_id, inventory, filters).to_dict()
    except Exception as e:
        _raise_for(e, "Compare BOQ")


@app.get("/api/boq/categories")
def get_categories(project_id: Optional[str] = None, service: BOQService = Depends(get_boq_service)):
    """Server categories merged with locally added ones"""
    try:
        return {"categories": service.categories(project_id)}
    except Exception as e:
        _raise_for(e, "Get categories")


@app.post("/api/boq/categories")
def add_category(payload: dict = Body(...), service: BOQService = Depends(get_boq_service)):
    """Add a custom category for a project"""
    try:
        request = service.validate_payload(CategoryRequest, payload)
        return {"categories": service.add_category(request.project_id, request.name)}
    except Exception as e:
        _raise_for(e, "Add category")


@app.on_event("startup")
def startup():
    """Validate configuration on startup"""
    Config.validate()
    logger.info("API server started")


@app.on_event("shutdown")
def shutdown():
    """Cleanup on shutdown"""
    if _service is not None:
        _service.category_cache.close()
    logger.info("API server stopped")
