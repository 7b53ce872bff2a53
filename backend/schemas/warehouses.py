from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from schemas.base import CamelModel


class WarehouseSummary(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(alias="_id")
    name: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None


class WarehouseCreate(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str
    state: str
    city: str

    @field_validator("name", "state", "city")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v
