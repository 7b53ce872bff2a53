from typing import Dict, List

from fastapi import APIRouter, Depends, Query, status

from core.http_errors import HANDLED_ERRORS, to_http_exception
from core.reconciliation import ReconciliationEngine, get_reconciliation_engine
from core.store_client import StoreClient, get_store_client
from schemas.inventory import WarehouseRead
from schemas.warehouses import WarehouseCreate, WarehouseSummary

router = APIRouter()


@router.get("/", response_model=List[WarehouseSummary])
async def list_warehouses(store: StoreClient = Depends(get_store_client)):
    try:
        return await store.list_warehouses()
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/filter", response_model=List[WarehouseSummary])
async def filter_warehouses(
    state: str = Query(..., min_length=1),
    city: str = Query(..., min_length=1),
    store: StoreClient = Depends(get_store_client),
):
    """Warehouses in a given state/city, for the warehouse picker."""
    try:
        return await store.filter_warehouses(state.strip(), city.strip())
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/{warehouse_id}", response_model=WarehouseRead)
async def get_warehouse(
    warehouse_id: str,
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    try:
        return await engine.fetch_warehouse(warehouse_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    payload: WarehouseCreate,
    store: StoreClient = Depends(get_store_client),
):
    data = payload.model_dump(by_alias=True)
    data.setdefault("virtualInventory", [])
    data.setdefault("billedInventory", [])
    try:
        created = await store.create_warehouse(data)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return created or {}
