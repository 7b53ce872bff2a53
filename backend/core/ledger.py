"""
Quantity ledger.

Immutable, in-memory view of the quantities one warehouse (or one order) holds
across its buckets, built from a store snapshot:

- virtual inventory: stock recorded but not yet billed
- billed inventory: stock converted to "Billed"
- order line items: total `quantity` plus the `billed_quantity` already billed

Nothing here talks to the network. Operations return a new ledger together
with the change-set describing what the store has to be told.
"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

VIRTUAL = "virtual"
BILLED = "billed"

BILL_TYPE_BILLED = "Billed"
BILL_TYPE_VIRTUAL_BILLED = "Virtual Billed"


def to_wire_number(value: Decimal):
    """JSON-friendly number: int when integral, float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class InventoryEntry:
    item_name: str
    quantity: Decimal
    weight: Any = None


@dataclass(frozen=True)
class BucketChange:
    bucket: str
    item_name: str
    delta: Decimal
    created: bool = False
    removed: bool = False


@dataclass(frozen=True)
class ChangeSet:
    warehouse_id: str
    item_name: str
    quantity: Decimal
    changes: Tuple[BucketChange, ...]
    persist_payload: Dict[str, Any]


@dataclass(frozen=True)
class WarehouseLedger:
    warehouse_id: str
    name: Optional[str] = None
    virtual_inventory: Tuple[InventoryEntry, ...] = ()
    billed_inventory: Tuple[InventoryEntry, ...] = ()

    def virtual_entry(self, index: int) -> InventoryEntry:
        if index < 0 or index >= len(self.virtual_inventory):
            raise IndexError(f"No virtual inventory entry at index {index}")
        return self.virtual_inventory[index]

    def find_billed(self, item_name: str) -> Optional[int]:
        for i, entry in enumerate(self.billed_inventory):
            if entry.item_name == item_name:
                return i
        return None

    def quantity_in(self, bucket: str, item_name: str) -> Decimal:
        entries = self.virtual_inventory if bucket == VIRTUAL else self.billed_inventory
        return sum((e.quantity for e in entries if e.item_name == item_name), Decimal(0))

    def total_for(self, item_name: str) -> Decimal:
        return self.quantity_in(VIRTUAL, item_name) + self.quantity_in(BILLED, item_name)


def transfer_to_billed(
    ledger: WarehouseLedger, index: int, quantity: Decimal
) -> Tuple[WarehouseLedger, ChangeSet]:
    """
    Move `quantity` of the virtual entry at `index` into billed inventory.

    The caller has already validated the quantity; asking for more than the
    entry holds is a programming error. A virtual entry that reaches exactly 0
    is dropped, keeping the order of the remaining entries.
    """
    source = ledger.virtual_entry(index)
    if quantity <= 0:
        raise ValueError("transfer quantity must be > 0")
    if quantity > source.quantity:
        raise ValueError(
            f"transfer of {quantity} exceeds {source.quantity} held for {source.item_name}"
        )

    remaining = source.quantity - quantity
    virtual = list(ledger.virtual_inventory)
    removed = remaining == 0
    if removed:
        del virtual[index]
    else:
        virtual[index] = replace(source, quantity=remaining)

    billed = list(ledger.billed_inventory)
    billed_index = ledger.find_billed(source.item_name)
    created = billed_index is None
    if created:
        billed.append(InventoryEntry(item_name=source.item_name, weight=source.weight, quantity=quantity))
    else:
        target = billed[billed_index]
        billed[billed_index] = replace(target, quantity=target.quantity + quantity)

    updated = replace(ledger, virtual_inventory=tuple(virtual), billed_inventory=tuple(billed))
    change_set = ChangeSet(
        warehouse_id=ledger.warehouse_id,
        item_name=source.item_name,
        quantity=quantity,
        changes=(
            BucketChange(bucket=VIRTUAL, item_name=source.item_name, delta=-quantity, removed=removed),
            BucketChange(bucket=BILLED, item_name=source.item_name, delta=quantity, created=created),
        ),
        persist_payload={
            "itemName": source.item_name,
            "weight": source.weight,
            "quantity": to_wire_number(quantity),
            "billType": BILL_TYPE_BILLED,
        },
    )
    return updated, change_set


@dataclass(frozen=True)
class LineItemBalance:
    name: str
    quantity: Decimal
    billed_quantity: Decimal = Decimal(0)

    @property
    def remaining(self) -> Decimal:
        return self.quantity - self.billed_quantity


@dataclass(frozen=True)
class OrderLedger:
    order_id: str
    warehouse_id: Optional[str]
    line_items: Tuple[LineItemBalance, ...] = ()

    def line_item(self, name: str) -> Optional[LineItemBalance]:
        for item in self.line_items:
            if item.name == name:
                return item
        return None
