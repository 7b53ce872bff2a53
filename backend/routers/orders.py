from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError

from core.errors import QuantityParseError
from core.export import XLSX_MEDIA_TYPE, orders_workbook
from core.http_errors import HANDLED_ERRORS, to_http_exception
from core.projection import OrderFilter
from core.reconciliation import ReconciliationEngine, get_reconciliation_engine
from core.session import WarehouseContext, current_warehouse_context
from schemas.orders import (
    BillPartialOut,
    BillPartialRequest,
    LineItemValidateRequest,
    OrderCreate,
    OrderFilterIn,
    OrderRead,
    OrderUpdate,
    TimePeriod,
)
from schemas.inventory import TransferDecisionOut

router = APIRouter()


def order_filter_params(
    status_filter: str = Query("All", alias="status"),
    period: TimePeriod = Query("all"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
) -> OrderFilter:
    try:
        f = OrderFilterIn(status=status_filter, period=period, start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    return OrderFilter.from_schema(f)


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    order_filter: OrderFilter = Depends(order_filter_params),
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """Order history of the session's warehouse, filtered and newest first."""
    try:
        return await engine.list_orders(ctx, order_filter)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/export")
async def export_orders(
    order_filter: OrderFilter = Depends(order_filter_params),
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    try:
        orders = await engine.list_orders(ctx, order_filter)
        content = orders_workbook(orders)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="orders.xlsx"'},
    )


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    data = payload.model_dump(mode="json", by_alias=True)
    data["warehouse"] = payload.warehouse or ctx.warehouse_id
    try:
        created = await engine.store.create_order(data)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return created or {}


@router.put("/{order_id}", response_model=Dict)
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    data = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    try:
        updated = await engine.store.update_order(order_id, data)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return updated or {}


@router.post("/{order_id}/validate", response_model=TransferDecisionOut)
async def validate_line_item(
    order_id: str,
    payload: LineItemValidateRequest,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """Validator result for one line item's typed quantity; never persists anything."""
    try:
        check = await engine.check_line_item(ctx, order_id, payload.name, payload.quantity)
    except QuantityParseError as e:
        return TransferDecisionOut(accepted=False, reason=e.message)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return TransferDecisionOut(
        accepted=check.decision.accepted,
        reason=check.decision.reason,
        quantity=float(check.quantity),
        available=float(check.available),
    )


@router.post("/{order_id}/bill", response_model=BillPartialOut)
async def bill_order_items(
    order_id: str,
    payload: BillPartialRequest,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Bill part of an order's line items as "Virtual Billed".

    All-or-nothing: if any item's quantity is invalid the whole batch is
    rejected with per-item errors and the store is not called.
    """
    try:
        result = await engine.bill_partial(
            ctx, order_id, payload.quantities, OrderFilter.from_schema(payload.filter)
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    return BillPartialOut(
        status=result.status,
        message=result.message,
        updates=result.updates,
        orders=result.orders,
        resynced=result.resynced,
    )
