from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.dashboard_session import DashboardSession
from db.database import get_async_session

SESSION_HEADER = "X-Dashboard-Session"


@dataclass(frozen=True)
class WarehouseContext:
    """Explicit scope for every warehouse query: who is asking, and for which warehouse."""
    session_id: str
    warehouse_id: str


async def load_session(db: AsyncSession, session_id: Optional[str]) -> DashboardSession:
    if not session_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Missing {SESSION_HEADER} header")
    res = await db.execute(select(DashboardSession).where(DashboardSession.id == session_id))
    sess = res.scalar_one_or_none()
    if not sess:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown dashboard session")
    return sess


async def current_dashboard_session(
    x_dashboard_session: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_async_session),
) -> DashboardSession:
    return await load_session(db, x_dashboard_session)


async def current_warehouse_context(
    sess: DashboardSession = Depends(current_dashboard_session),
) -> WarehouseContext:
    if not sess.warehouse_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No warehouse selected")
    return WarehouseContext(session_id=sess.id, warehouse_id=sess.warehouse_id)
