from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
from .database import Base


class TransferRecord(Base):
    """
    Append-only journal of reconciliation attempts.

    Advisory history only: the store stays the source of truth for quantities.
    """
    __tablename__ = "transfer_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False, index=True)  # INVENTORY | BILLING
    warehouse_id = Column(String, nullable=False, index=True)
    order_id = Column(String, nullable=True, index=True)
    item_name = Column(String, nullable=True)
    quantity = Column(Numeric(18, 4), nullable=True)
    outcome = Column(String(16), nullable=False, index=True)  # REJECTED | NOOP | PERSISTED | FAILED
    detail = Column(Text, nullable=True)
    diverged = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
