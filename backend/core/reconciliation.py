"""
Reconciliation engine.

Two flows move quantity between buckets:

- inventory transfer: virtual inventory -> billed inventory of one warehouse
  (PUT /warehouse/updateInventoryItem/{id})
- partial billing: order line items -> "Virtual Billed", item by item
  (PUT /order/{id}/bill-type)

Both run as one request-then-reconcile step under a per-key lock:
fetch the store's current state, validate against it, persist, then re-fetch.
Local state is never mutated ahead of the store's answer, so a failed persist
leaves nothing to roll back.
"""
import asyncio
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

from fastapi import Depends, Request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.converters import (
    ledger_to_schema,
    order_to_ledger,
    warehouse_to_ledger,
)
from core.errors import (
    DataError,
    NotFoundError,
    PersistError,
    QuantityParseError,
    StaleSnapshotError,
    TransferRejectedError,
)
from core.journal import TransferJournal
from core.ledger import (
    BILL_TYPE_VIRTUAL_BILLED,
    BILLED,
    VIRTUAL,
    ChangeSet,
    InventoryEntry,
    OrderLedger,
    WarehouseLedger,
    to_wire_number,
    transfer_to_billed,
)
from core.logging_config import get_logger
from core.projection import OrderFilter, project_orders
from core.session import WarehouseContext
from core.store_client import StoreClient, StoreError, get_store_client
from core.validation import TransferDecision, parse_quantity, validate_transfer
from db.database import get_async_session
from schemas.inventory import WarehouseRead
from schemas.orders import OrderRead

logger = get_logger("reconciliation")

KIND_INVENTORY = "INVENTORY"
KIND_BILLING = "BILLING"

OUTCOME_REJECTED = "REJECTED"
OUTCOME_NOOP = "NOOP"
OUTCOME_PERSISTED = "PERSISTED"
OUTCOME_FAILED = "FAILED"

BATCH_REJECTED_MESSAGE = "Please correct the errors before submitting."


class KeyedLocks:
    """
    One asyncio.Lock per key, created on first use.

    Entries are weak: a lock lives only while a holder or waiter references it,
    so per-order keys do not pile up over the life of the process.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, *key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


@dataclass
class InventoryTransferResult:
    status: str  # transferred | noop
    message: str
    item_name: Optional[str]
    quantity: Decimal
    warehouse: WarehouseRead
    change_set: Optional[ChangeSet] = None
    resynced: bool = True
    diverged: bool = False


@dataclass
class BillingResult:
    status: str  # billed | noop
    message: str
    updates: List[Dict[str, Any]] = field(default_factory=list)
    orders: Optional[List[OrderRead]] = None
    resynced: bool = True


@dataclass(frozen=True)
class CheckResult:
    decision: TransferDecision
    quantity: Decimal
    available: Decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationEngine:
    def __init__(
        self,
        store: StoreClient,
        *,
        journal: Optional[TransferJournal] = None,
        locks: Optional[KeyedLocks] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.journal = journal
        self.locks = locks or KeyedLocks()
        self.clock = clock

    # ----------------------------
    # Store reads
    # ----------------------------

    async def fetch_warehouse(self, warehouse_id: str) -> WarehouseRead:
        try:
            data = await self.store.get_warehouse(warehouse_id)
        except StoreError as e:
            if e.status_code == 404:
                raise NotFoundError("Warehouse not found") from e
            raise
        if not data:
            raise NotFoundError("Warehouse not found")
        try:
            return WarehouseRead.model_validate(data)
        except ValidationError as e:
            raise DataError(f"Malformed warehouse {warehouse_id} from store: {e}") from e

    async def fetch_orders(self) -> List[OrderRead]:
        data = await self.store.list_orders()
        try:
            return [OrderRead.model_validate(o) for o in data]
        except ValidationError as e:
            raise DataError(f"Malformed order from store: {e}") from e

    async def list_orders(self, ctx: WarehouseContext, order_filter: OrderFilter = OrderFilter()) -> List[OrderRead]:
        return project_orders(await self.fetch_orders(), ctx.warehouse_id, order_filter, now=self.clock())

    @staticmethod
    def _find_order(orders: List[OrderRead], ctx: WarehouseContext, order_id: str) -> OrderRead:
        for o in orders:
            if o.id == order_id and o.warehouse == ctx.warehouse_id:
                return o
        raise NotFoundError("Order not found")

    @staticmethod
    def _locate(ledger: WarehouseLedger, index: int, item_name: Optional[str]) -> InventoryEntry:
        try:
            entry = ledger.virtual_entry(index)
        except IndexError:
            raise StaleSnapshotError(f"No virtual inventory entry at index {index}")
        if item_name is not None and entry.item_name != item_name:
            raise StaleSnapshotError(
                f"Virtual inventory entry {index} is {entry.item_name!r}, not {item_name!r}"
            )
        return entry

    async def _journal(self, **kwargs) -> None:
        if self.journal is None:
            return
        try:
            await self.journal.record(**kwargs)
        except SQLAlchemyError:
            # The store already holds the outcome; the journal is history only.
            logger.exception("could not journal %s", kwargs)

    # ----------------------------
    # Inventory: virtual -> billed
    # ----------------------------

    async def check_inventory_transfer(
        self, ctx: WarehouseContext, source_index: int, raw_quantity, item_name: Optional[str] = None
    ) -> CheckResult:
        qty = parse_quantity(raw_quantity)
        ledger = warehouse_to_ledger(await self.fetch_warehouse(ctx.warehouse_id))
        entry = self._locate(ledger, source_index, item_name)
        return CheckResult(validate_transfer(qty, entry.quantity), qty, entry.quantity)

    async def transfer_to_billed(
        self, ctx: WarehouseContext, source_index: int, raw_quantity, item_name: Optional[str] = None
    ) -> InventoryTransferResult:
        qty = parse_quantity(raw_quantity)
        wid = ctx.warehouse_id

        if item_name is None:
            snapshot = warehouse_to_ledger(await self.fetch_warehouse(wid))
            item_name = self._locate(snapshot, source_index, None).item_name

        async with self.locks.get(KIND_INVENTORY, wid, item_name):
            warehouse = await self.fetch_warehouse(wid)
            ledger = warehouse_to_ledger(warehouse)
            entry = self._locate(ledger, source_index, item_name)

            decision = validate_transfer(qty, entry.quantity)
            if not decision.accepted:
                logger.info("transfer rejected: warehouse=%s item=%s qty=%s: %s", wid, item_name, qty, decision.reason)
                await self._journal(
                    kind=KIND_INVENTORY, warehouse_id=wid, outcome=OUTCOME_REJECTED,
                    item_name=item_name, quantity=qty, detail=decision.reason,
                )
                raise TransferRejectedError(decision.reason)

            if qty == 0:
                await self._journal(
                    kind=KIND_INVENTORY, warehouse_id=wid, outcome=OUTCOME_NOOP, item_name=item_name, quantity=qty,
                )
                return InventoryTransferResult(
                    status="noop",
                    message="Nothing to transfer",
                    item_name=item_name,
                    quantity=qty,
                    warehouse=warehouse,
                )

            projected, change_set = transfer_to_billed(ledger, source_index, qty)

            try:
                await self.store.update_inventory_item(wid, change_set.persist_payload)
            except StoreError as e:
                await self._journal(
                    kind=KIND_INVENTORY, warehouse_id=wid, outcome=OUTCOME_FAILED,
                    item_name=item_name, quantity=qty, detail=str(e),
                )
                raise PersistError("Failed to update inventory on the server.", cause=e) from e

            resynced, diverged = True, False
            try:
                fresh = await self.fetch_warehouse(wid)
            except (StoreError, NotFoundError, DataError) as e:
                logger.warning("re-fetch after transfer failed for warehouse %s: %r", wid, e)
                fresh = ledger_to_schema(projected, warehouse)
                resynced = False
            else:
                diverged = _diverged(projected, warehouse_to_ledger(fresh), item_name)
                if diverged:
                    logger.warning(
                        "warehouse %s item %s differs from projection after transfer of %s",
                        wid, item_name, qty,
                    )

            logger.info("transfer persisted: warehouse=%s item=%s qty=%s", wid, item_name, qty)
            await self._journal(
                kind=KIND_INVENTORY, warehouse_id=wid, outcome=OUTCOME_PERSISTED,
                item_name=item_name, quantity=qty, diverged=diverged,
            )
            return InventoryTransferResult(
                status="transferred",
                message="Transfer successful and inventory updated!",
                item_name=item_name,
                quantity=qty,
                warehouse=fresh,
                change_set=change_set,
                resynced=resynced,
                diverged=diverged,
            )

    # ----------------------------
    # Orders: partial billing
    # ----------------------------

    @staticmethod
    def _batch_errors(ledger: OrderLedger, parsed: Mapping[str, Decimal]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for name, qty in parsed.items():
            line = ledger.line_item(name)
            if line is None:
                errors[name] = f"Unknown line item {name!r}"
                continue
            decision = validate_transfer(qty, line.remaining)
            if not decision.accepted:
                errors[name] = decision.reason
        return errors

    async def check_line_item(self, ctx: WarehouseContext, order_id: str, name: str, raw_quantity) -> CheckResult:
        qty = parse_quantity(raw_quantity)
        order = self._find_order(await self.fetch_orders(), ctx, order_id)
        line = order_to_ledger(order).line_item(name)
        if line is None:
            raise NotFoundError(f"Unknown line item {name!r}")
        return CheckResult(validate_transfer(qty, line.remaining), qty, line.remaining)

    async def _reproject(self, ctx: WarehouseContext, order_filter: OrderFilter) -> Tuple[Optional[List[OrderRead]], bool]:
        try:
            return await self.list_orders(ctx, order_filter), True
        except (StoreError, DataError) as e:
            logger.warning("re-fetch of orders failed for warehouse %s: %r", ctx.warehouse_id, e)
            return None, False

    async def bill_partial(
        self,
        ctx: WarehouseContext,
        order_id: str,
        raw_quantities: Mapping[str, Any],
        order_filter: OrderFilter = OrderFilter(),
    ) -> BillingResult:
        wid = ctx.warehouse_id
        parsed: Dict[str, Decimal] = {}
        errors: Dict[str, str] = {}
        for name, raw in raw_quantities.items():
            try:
                parsed[name] = parse_quantity(raw)
            except QuantityParseError as e:
                errors[name] = e.message

        async with self.locks.get(KIND_BILLING, wid, order_id):
            # Latest billedQuantity per line item, not whatever the caller saw.
            order = self._find_order(await self.fetch_orders(), ctx, order_id)
            ledger = order_to_ledger(order)
            errors.update(self._batch_errors(ledger, parsed))

            if errors:
                logger.info("billing batch rejected: order=%s errors=%s", order_id, errors)
                await self._journal(
                    kind=KIND_BILLING, warehouse_id=wid, order_id=order_id, outcome=OUTCOME_REJECTED,
                    detail="; ".join(f"{n}: {m}" for n, m in sorted(errors.items())),
                )
                raise TransferRejectedError(BATCH_REJECTED_MESSAGE, errors=errors)

            updates = [
                {"name": name, "quantity": to_wire_number(qty), "billType": BILL_TYPE_VIRTUAL_BILLED}
                for name, qty in parsed.items()
                if qty > 0
            ]
            if not updates:
                await self._journal(kind=KIND_BILLING, warehouse_id=wid, order_id=order_id, outcome=OUTCOME_NOOP)
                orders, resynced = await self._reproject(ctx, order_filter)
                return BillingResult(status="noop", message="Nothing to bill", orders=orders, resynced=resynced)

            try:
                await self.store.update_bill_type_part_wise(order_id, updates)
            except StoreError as e:
                await self._journal(
                    kind=KIND_BILLING, warehouse_id=wid, order_id=order_id, outcome=OUTCOME_FAILED, detail=str(e),
                )
                raise PersistError("Failed to update order", cause=e) from e

            logger.info("billing persisted: order=%s items=%s", order_id, [u["name"] for u in updates])
            for u in updates:
                await self._journal(
                    kind=KIND_BILLING, warehouse_id=wid, order_id=order_id, outcome=OUTCOME_PERSISTED,
                    item_name=u["name"], quantity=parsed[u["name"]],
                )

            orders, resynced = await self._reproject(ctx, order_filter)
            return BillingResult(status="billed", message="Items Billed!", updates=updates, orders=orders, resynced=resynced)


def _diverged(projected: WarehouseLedger, fresh: WarehouseLedger, item_name: str) -> bool:
    return any(
        projected.quantity_in(bucket, item_name) != fresh.quantity_in(bucket, item_name)
        for bucket in (VIRTUAL, BILLED)
    )


def get_transfer_locks(request: Request) -> KeyedLocks:
    locks = getattr(request.app.state, "transfer_locks", None)
    if locks is None:
        locks = KeyedLocks()
        request.app.state.transfer_locks = locks
    return locks


async def get_reconciliation_engine(
    store: StoreClient = Depends(get_store_client),
    locks: KeyedLocks = Depends(get_transfer_locks),
    db: AsyncSession = Depends(get_async_session),
) -> ReconciliationEngine:
    return ReconciliationEngine(store, journal=TransferJournal(db), locks=locks)
