from typing import AsyncGenerator, Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.reconciliation import KeyedLocks, ReconciliationEngine
from core.session import SESSION_HEADER, WarehouseContext
from core.store_client import StoreClient
from db import dashboard_session, transfer_record  # noqa: F401
from db.database import Base, get_async_session
from fake_store import BASE_URL, FakeStore
from main import app


@pytest.fixture
def fake_store() -> FakeStore:
    store = FakeStore()
    store.add_warehouse(
        "wh1",
        name="Main",
        virtual=[{"itemName": "Oil", "weight": 15, "quantity": 100}],
        billed=[],
    )
    store.add_warehouse("wh2", name="Second", state="Maharashtra", city="Pune")
    store.add_order(
        "o1",
        days_ago=2,
        items=[
            {"name": "Oil", "packaging": "tin", "weight": 1, "staticPrice": 1500, "quantity": 50, "billedQuantity": 20},
            {"name": "Ghee", "packaging": "box", "weight": 2, "staticPrice": 900, "quantity": 10},
        ],
    )
    store.add_order("o2", days_ago=10, status="billed")
    store.add_order("o3", days_ago=40)
    store.add_order("o4", warehouse="wh2", days_ago=1)
    return store


@pytest_asyncio.fixture
async def store_client(fake_store: FakeStore) -> AsyncGenerator[StoreClient, None]:
    client = StoreClient(BASE_URL, transport=fake_store.client_transport())
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def ctx() -> WarehouseContext:
    return WarehouseContext(session_id="s1", warehouse_id="wh1")


@pytest.fixture
def engine(store_client: StoreClient) -> ReconciliationEngine:
    return ReconciliationEngine(store_client)


@pytest_asyncio.fixture
async def client(store_client: StoreClient, session_maker) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session_override
    app.state.store_client = store_client
    app.state.transfer_locks = KeyedLocks()

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    app.state.store_client = None


@pytest_asyncio.fixture
async def session_headers(client: httpx.AsyncClient) -> Dict[str, str]:
    r = await client.post("/session/", json={"warehouseId": "wh1"})
    assert r.status_code == 201, r.text
    return {SESSION_HEADER: r.json()["sessionId"]}
