from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from core.config import settings
from core.logging_config import configure_logging
from core.reconciliation import KeyedLocks
from core.store_client import make_store_client
from db.database import create_db_and_tables
from routers.bookings import router as bookings_router
from routers.inventory import router as inventory_router
from routers.orders import router as orders_router
from routers.session import router as session_router
from routers.warehouses import router as warehouses_router

logger = configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    app.state.store_client = make_store_client()
    app.state.transfer_locks = KeyedLocks()
    logger.info("store client ready: %s", settings.store_api_url)
    yield
    await app.state.store_client.aclose()


app = FastAPI(
    title="Bargainwale Inventory Reconciliation API",
    description="Virtual/billed inventory transfers and partial order billing for the admin dashboard",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Warehouse selection (scopes every other call)
app.include_router(session_router, prefix="/session", tags=["session"])
app.include_router(warehouses_router, prefix="/warehouses", tags=["warehouses"])

# Reconciliation
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(orders_router, prefix="/orders", tags=["orders"])
app.include_router(bookings_router, prefix="/bookings", tags=["bookings"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
