"""
Async client for the Order/Warehouse Store REST backend.

The store owns durable truth for orders and warehouses. Every method maps to
one endpoint; failures surface as StoreError and are never retried here.
"""
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Request

from core.config import settings
from core.logging_config import get_logger

logger = get_logger("store")


class StoreError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %r", method, path, e)
            raise StoreError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning("%s %s failed (%s): %s", method, path, resp.status_code, resp.text)
            raise StoreError(
                f"{method} {path} failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON") from e

    # ----------------------------
    # Orders
    # ----------------------------

    async def list_orders(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/order") or []

    async def create_order(self, data: Dict[str, Any]) -> Any:
        return await self._request("POST", "/order", json=data)

    async def update_order(self, order_id: str, data: Dict[str, Any]) -> Any:
        return await self._request("PUT", f"/order/{order_id}", json=data)

    async def update_bill_type_part_wise(self, order_id: str, items: List[Dict[str, Any]]) -> Any:
        """
        Calls: PUT /order/{id}/bill-type

        Each item is {name, quantity, billType}; quantity is the amount billed by
        this call, not the new cumulative total.
        """
        return await self._request("PUT", f"/order/{order_id}/bill-type", json={"items": items})

    # ----------------------------
    # Bookings
    # ----------------------------

    async def list_bookings(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/booking") or []

    async def create_booking(self, data: Dict[str, Any]) -> Any:
        return await self._request("POST", "/booking", json=data)

    # ----------------------------
    # Warehouses
    # ----------------------------

    async def list_warehouses(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/warehouse") or []

    async def get_warehouse(self, warehouse_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/warehouse/{warehouse_id}")

    async def create_warehouse(self, data: Dict[str, Any]) -> Any:
        return await self._request("POST", "/warehouse", json=data)

    async def filter_warehouses(self, state: str, city: str) -> List[Dict[str, Any]]:
        return await self._request("GET", "/warehouse/filter", params={"state": state, "city": city}) or []

    async def update_inventory_item(self, warehouse_id: str, data: Dict[str, Any]) -> Any:
        """
        Calls: PUT /warehouse/updateInventoryItem/{id}

        Persists a virtual -> billed move of data["quantity"] for data["itemName"].
        """
        return await self._request("PUT", f"/warehouse/updateInventoryItem/{warehouse_id}", json=data)


def make_store_client() -> StoreClient:
    return StoreClient(settings.store_api_url, timeout=settings.store_timeout_seconds)


def get_store_client(request: Request) -> StoreClient:
    client = getattr(request.app.state, "store_client", None)
    if client is None:
        client = make_store_client()
        request.app.state.store_client = client
    return client
