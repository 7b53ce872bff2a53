from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.transfer_record import TransferRecord


class TransferJournal:
    """Writes one TransferRecord per reconciliation attempt."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        *,
        kind: str,
        warehouse_id: str,
        outcome: str,
        item_name: Optional[str] = None,
        order_id: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        detail: Optional[str] = None,
        diverged: bool = False,
    ) -> TransferRecord:
        rec = TransferRecord(
            kind=kind,
            warehouse_id=warehouse_id,
            order_id=order_id,
            item_name=item_name,
            quantity=quantity,
            outcome=outcome,
            detail=detail,
            diverged=diverged,
        )
        self.db.add(rec)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(rec)
        return rec

    async def list_for_warehouse(
        self, warehouse_id: str, *, outcome: Optional[str] = None, limit: int = 100
    ) -> List[TransferRecord]:
        stmt = select(TransferRecord).where(TransferRecord.warehouse_id == warehouse_id)
        if outcome:
            stmt = stmt.where(TransferRecord.outcome == outcome)
        res = await self.db.execute(stmt.order_by(TransferRecord.id.desc()).limit(limit))
        return list(res.scalars().all())
