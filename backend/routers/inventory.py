from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.converters import change_set_to_schema
from core.errors import QuantityParseError
from core.http_errors import HANDLED_ERRORS, to_http_exception
from core.journal import TransferJournal
from core.reconciliation import ReconciliationEngine, get_reconciliation_engine
from core.session import WarehouseContext, current_warehouse_context
from db.database import get_async_session
from schemas.inventory import (
    InventoryTransferCreate,
    InventoryTransferOut,
    TransferDecisionOut,
    TransferOutcome,
    TransferRecordOut,
    WarehouseRead,
)

router = APIRouter()


@router.get("/", response_model=WarehouseRead)
async def get_inventory(
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """Virtual and billed inventory of the session's warehouse, as the store has it now."""
    try:
        return await engine.fetch_warehouse(ctx.warehouse_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e


@router.post("/validate", response_model=TransferDecisionOut)
async def validate_inventory_transfer(
    payload: InventoryTransferCreate,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Run the transfer validator for the value currently typed into a row.

    Meant to be called on every input change; never persists anything.
    """
    try:
        check = await engine.check_inventory_transfer(
            ctx, payload.source_index, payload.quantity, item_name=payload.item_name
        )
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


@router.post("/transfers", response_model=InventoryTransferOut)
async def create_transfer(
    payload: InventoryTransferCreate,
    ctx: WarehouseContext = Depends(current_warehouse_context),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
):
    """
    Move quantity from virtual to billed inventory.

    - 422 when the quantity is not a number or exceeds the virtual quantity
    - 409 when the row at sourceIndex is no longer the item the caller saw
    - 502 when the store rejects the update; nothing has changed in that case
    """
    try:
        result = await engine.transfer_to_billed(
            ctx, payload.source_index, payload.quantity, item_name=payload.item_name
        )
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e

    return InventoryTransferOut(
        status=result.status,
        message=result.message,
        item_name=result.item_name,
        quantity=float(result.quantity),
        changes=change_set_to_schema(result.change_set) if result.change_set else [],
        warehouse=result.warehouse,
        resynced=result.resynced,
        diverged=result.diverged,
    )


@router.get("/transfers", response_model=List[TransferRecordOut])
async def list_transfers(
    outcome: Optional[TransferOutcome] = None,
    limit: int = Query(100, ge=1, le=1000),
    ctx: WarehouseContext = Depends(current_warehouse_context),
    db: AsyncSession = Depends(get_async_session),
):
    records = await TransferJournal(db).list_for_warehouse(ctx.warehouse_id, outcome=outcome, limit=limit)
    return [TransferRecordOut.model_validate(r) for r in records]
