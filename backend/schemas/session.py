from datetime import datetime
from typing import Optional

from pydantic import field_validator

from schemas.base import CamelModel


class SessionSelect(CamelModel):
    warehouse_id: str

    @field_validator("warehouse_id")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("warehouseId is required")
        return v


class SessionRead(CamelModel):
    session_id: str
    warehouse_id: Optional[str] = None
    warehouse_name: Optional[str] = None
    selected_at: Optional[datetime] = None
