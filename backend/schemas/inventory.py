from datetime import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from schemas.base import CamelModel


RawQuantity = Union[int, float, str, None]
TransferKind = Literal["INVENTORY", "BILLING"]
TransferOutcome = Literal["REJECTED", "NOOP", "PERSISTED", "FAILED"]


class InventoryItemRead(CamelModel):
    item_name: str
    weight: Any = None
    quantity: float = 0

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_default(cls, v):
        return 0 if v is None else v


class WarehouseRead(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(alias="_id")
    name: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    virtual_inventory: List[InventoryItemRead] = []
    billed_inventory: List[InventoryItemRead] = []


class InventoryTransferCreate(CamelModel):
    source_index: int = Field(ge=0)
    # Guards against a stale client view: when given, must match the entry at source_index.
    item_name: Optional[str] = None
    quantity: RawQuantity = None


class TransferDecisionOut(CamelModel):
    accepted: bool
    reason: Optional[str] = None
    quantity: Optional[float] = None
    available: Optional[float] = None


class BucketChangeOut(CamelModel):
    bucket: str
    item_name: str
    delta: float
    created: bool = False
    removed: bool = False


class InventoryTransferOut(CamelModel):
    status: Literal["transferred", "noop"]
    message: str
    item_name: Optional[str] = None
    quantity: float
    changes: List[BucketChangeOut] = []
    warehouse: WarehouseRead
    # False when the post-persist re-fetch failed and `warehouse` is the local projection.
    resynced: bool = True
    diverged: bool = False


class TransferRecordOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: TransferKind
    warehouse_id: str
    order_id: Optional[str] = None
    item_name: Optional[str] = None
    quantity: Optional[float] = None
    outcome: TransferOutcome
    detail: Optional[str] = None
    diverged: bool = False
    created_at: datetime
