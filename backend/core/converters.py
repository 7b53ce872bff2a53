from decimal import Decimal, InvalidOperation
from typing import Dict, List

from core.errors import DataError
from core.ledger import (
    ChangeSet,
    InventoryEntry,
    LineItemBalance,
    OrderLedger,
    WarehouseLedger,
)
from schemas.inventory import InventoryItemRead, WarehouseRead
from schemas.orders import OrderRead


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise DataError(f"Invalid quantity from store: {value!r}")


def warehouse_to_ledger(warehouse: WarehouseRead) -> WarehouseLedger:
    """Convert a store warehouse snapshot into a ledger"""
    return WarehouseLedger(
        warehouse_id=warehouse.id,
        name=warehouse.name,
        virtual_inventory=tuple(
            InventoryEntry(item_name=it.item_name, weight=it.weight, quantity=to_decimal(it.quantity))
            for it in warehouse.virtual_inventory
        ),
        billed_inventory=tuple(
            InventoryEntry(item_name=it.item_name, weight=it.weight, quantity=to_decimal(it.quantity))
            for it in warehouse.billed_inventory
        ),
    )


def ledger_to_schema(ledger: WarehouseLedger, base: WarehouseRead) -> WarehouseRead:
    """Render a ledger back onto the snapshot it was built from"""
    def _items(entries) -> List[InventoryItemRead]:
        return [
            InventoryItemRead(item_name=e.item_name, weight=e.weight, quantity=float(e.quantity))
            for e in entries
        ]

    return base.model_copy(
        update={
            "virtual_inventory": _items(ledger.virtual_inventory),
            "billed_inventory": _items(ledger.billed_inventory),
        }
    )


def order_to_ledger(order: OrderRead) -> OrderLedger:
    """
    Build the billing ledger of one order.

    The store bills line items by name, so an order holding two lines with the
    same name cannot be billed unambiguously and is refused as bad data.
    """
    seen = set()
    for it in order.items:
        if it.name in seen:
            raise DataError(f"Order {order.id} has duplicate line item {it.name!r}")
        seen.add(it.name)

    return OrderLedger(
        order_id=order.id,
        warehouse_id=order.warehouse,
        line_items=tuple(
            LineItemBalance(
                name=it.name,
                quantity=to_decimal(it.quantity),
                billed_quantity=to_decimal(it.billed_quantity),
            )
            for it in order.items
        ),
    )


def change_set_to_schema(change_set: ChangeSet) -> List[Dict]:
    return [
        {
            "bucket": c.bucket,
            "item_name": c.item_name,
            "delta": float(c.delta),
            "created": c.created,
            "removed": c.removed,
        }
        for c in change_set.changes
    ]
