from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, computed_field, field_validator, model_validator

from schemas.base import CamelModel
from schemas.inventory import RawQuantity


BillType = Literal["Virtual Billed", "Billed"]
OrderStatus = Literal["created", "payment pending", "billed", "completed"]
Packaging = Literal["box", "tin"]
TimePeriod = Literal["all", "last7Days", "last30Days", "custom"]


class OrderLineItemRead(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str
    packaging: Optional[str] = None
    weight: Optional[float] = None
    static_price: Optional[float] = None
    quantity: float = 0
    billed_quantity: float = 0

    @field_validator("quantity", "billed_quantity", mode="before")
    @classmethod
    def _missing_is_zero(cls, v):
        return 0 if v is None else v


class OrderRead(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(alias="_id")
    company_bargain_date: Optional[str] = None
    company_bargain_no: Optional[str] = None
    seller_name: Optional[str] = None
    seller_location: Optional[str] = None
    seller_contact: Optional[str] = None
    status: Optional[str] = None
    bill_type: Optional[str] = None
    warehouse: Optional[str] = None
    description: Optional[str] = None
    transport_type: Optional[str] = None
    transport_location: Optional[str] = None
    payment_days: Optional[float] = None
    reminder_days: List[Any] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    items: List[OrderLineItemRead] = []

    @field_validator("warehouse", mode="before")
    @classmethod
    def _warehouse_ref(cls, v):
        # The store sometimes populates the reference.
        if isinstance(v, dict):
            return v.get("_id")
        return v

    @field_validator("reminder_days", "items", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v


class OrderLineItemCreate(CamelModel):
    name: str
    packaging: Packaging = "box"
    quantity: int = Field(gt=0)
    static_price: int = Field(gt=0)
    quantity_per_piece: int = Field(gt=0)
    pieces_per_box: int = Field(gt=0)
    number_of_boxes: int = Field(gt=0)
    weight_per_ml: float = Field(gt=0)

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Item Name is required")
        return v

    @computed_field
    @property
    def weight(self) -> float:
        """Total weight in metric tons (ml -> g -> kg -> t)."""
        total_ml = self.quantity_per_piece * self.pieces_per_box * self.number_of_boxes
        return total_ml * self.weight_per_ml / 1_000_000


class OrderCreate(CamelModel):
    company_bargain_date: date
    company_bargain_no: str
    seller_name: str
    seller_location: str
    seller_contact: str
    organization: str
    transport_type: str
    transport_location: str
    bill_type: BillType = "Virtual Billed"
    status: OrderStatus = "created"
    description: str = ""
    warehouse: Optional[str] = None
    payment_days: Optional[int] = Field(default=None, ge=0)
    reminder_days: List[int] = []
    items: List[OrderLineItemCreate] = Field(min_length=1)

    @field_validator(
        "company_bargain_no",
        "seller_name",
        "seller_location",
        "seller_contact",
        "organization",
        "transport_type",
        "transport_location",
    )
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @model_validator(mode="after")
    def _unique_item_names(self):
        names = [it.name for it in self.items]
        if len(names) != len(set(names)):
            raise ValueError("line item names must be unique within an order")
        return self


class OrderUpdate(CamelModel):
    status: Optional[OrderStatus] = None
    bill_type: Optional[BillType] = None
    description: Optional[str] = None
    transport_type: Optional[str] = None
    transport_location: Optional[str] = None
    payment_days: Optional[int] = Field(default=None, ge=0)
    reminder_days: Optional[List[int]] = None


class OrderFilterIn(CamelModel):
    status: str = "All"
    period: TimePeriod = "all"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def _custom_range_order(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self


class LineItemValidateRequest(CamelModel):
    name: str
    quantity: RawQuantity = None


class BillPartialRequest(CamelModel):
    # item name -> quantity text as typed
    quantities: Dict[str, RawQuantity]
    filter: OrderFilterIn = OrderFilterIn()


class BillingUpdateOut(CamelModel):
    name: str
    quantity: float
    bill_type: str


class BillPartialOut(CamelModel):
    status: Literal["billed", "noop"]
    message: str
    updates: List[BillingUpdateOut] = []
    orders: Optional[List[OrderRead]] = None
    resynced: bool = True
