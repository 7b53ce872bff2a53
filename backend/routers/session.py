from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.http_errors import HANDLED_ERRORS, to_http_exception
from core.reconciliation import ReconciliationEngine, get_reconciliation_engine
from core.session import current_dashboard_session
from db.dashboard_session import DashboardSession
from db.database import get_async_session
from schemas.session import SessionRead, SessionSelect

router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def _select_warehouse(
    sess: DashboardSession, warehouse_id: str, engine: ReconciliationEngine
) -> None:
    try:
        warehouse = await engine.fetch_warehouse(warehouse_id)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    sess.warehouse_id = warehouse.id
    sess.warehouse_name = warehouse.name
    sess.selected_at = _now()


@router.post("/", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionSelect,
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
    db: AsyncSession = Depends(get_async_session),
):
    """Start a dashboard session scoped to one warehouse."""
    sess = DashboardSession()
    await _select_warehouse(sess, payload.warehouse_id, engine)
    db.add(sess)
    await db.commit()
    await db.refresh(sess)
    return SessionRead(**sess.to_schema)


@router.get("/", response_model=SessionRead)
async def read_session(sess: DashboardSession = Depends(current_dashboard_session)):
    return SessionRead(**sess.to_schema)


@router.put("/", response_model=SessionRead)
async def change_warehouse(
    payload: SessionSelect,
    sess: DashboardSession = Depends(current_dashboard_session),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
    db: AsyncSession = Depends(get_async_session),
):
    await _select_warehouse(sess, payload.warehouse_id, engine)
    await db.commit()
    await db.refresh(sess)
    return SessionRead(**sess.to_schema)


@router.delete("/warehouse", response_model=SessionRead)
async def clear_warehouse(
    sess: DashboardSession = Depends(current_dashboard_session),
    db: AsyncSession = Depends(get_async_session),
):
    sess.warehouse_id = None
    sess.warehouse_name = None
    sess.selected_at = None
    await db.commit()
    await db.refresh(sess)
    return SessionRead(**sess.to_schema)
