from datetime import date
from typing import List, Literal, Optional

from pydantic import ConfigDict, Field, PositiveInt, field_validator, model_validator

from schemas.base import CamelModel
from schemas.orders import OrderStatus, Packaging


DeliveryOption = Literal["Pickup", "Delivery"]


def _required(v: Optional[str], label: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


class BookingBuyer(CamelModel):
    buyer: str
    buyer_location: str
    buyer_contact: str

    @field_validator("buyer")
    @classmethod
    def _buyer_name(cls, v: str) -> str:
        return _required(v, "Buyer Name")

    @field_validator("buyer_location")
    @classmethod
    def _buyer_location(cls, v: str) -> str:
        return _required(v, "Buyer Location")

    @field_validator("buyer_contact")
    @classmethod
    def _buyer_contact(cls, v: str) -> str:
        return _required(v, "Buyer Contact")


class BookingLineItem(CamelModel):
    name: str
    packaging: Packaging = "box"
    type: Optional[str] = None
    weight: float = Field(gt=0)
    static_price: float = Field(gt=0)
    quantity: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required(v, "Item Name")


class DeliveryAddress(CamelModel):
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None


class InventoryQuantity(CamelModel):
    item_name: str
    quantity: int = Field(gt=0)

    @field_validator("item_name")
    @classmethod
    def _item_name(cls, v: str) -> str:
        return _required(v, "Item Name")


class BookingCreate(CamelModel):
    company_bargain_date: date
    company_bargain_no: str
    buyer: BookingBuyer
    items: List[BookingLineItem] = Field(min_length=1)
    validity: int = Field(default=21, gt=0)
    delivery_option: DeliveryOption
    warehouse: Optional[str] = None
    delivery_address: DeliveryAddress = DeliveryAddress()
    virtual_inventory_quantities: List[InventoryQuantity] = []
    billed_inventory_quantities: List[InventoryQuantity] = []
    description: str = ""
    status: OrderStatus = "created"
    reminder_days: List[PositiveInt] = [7, 3, 1]

    @field_validator("company_bargain_no")
    @classmethod
    def _bargain_no(cls, v: str) -> str:
        return _required(v, "Company Bargain Number")

    @model_validator(mode="after")
    def _delivery_rules(self):
        if self.delivery_option == "Pickup":
            self.warehouse = _required(self.warehouse, "Warehouse for Pickup option")
            return self

        addr = self.delivery_address
        missing = [
            label
            for label, value in (
                ("Address Line 1", addr.address_line1),
                ("City", addr.city),
                ("State", addr.state),
                ("Pin Code", addr.pin_code),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise ValueError(f"{', '.join(missing)} required for Delivery option")
        return self


class BookingRead(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(alias="_id")
    company_bargain_no: Optional[str] = None
    company_bargain_date: Optional[str] = None
    delivery_option: Optional[str] = None
    warehouse: Optional[str] = None
    status: Optional[str] = None

    @field_validator("warehouse", mode="before")
    @classmethod
    def _warehouse_ref(cls, v):
        if isinstance(v, dict):
            return v.get("_id")
        return v
