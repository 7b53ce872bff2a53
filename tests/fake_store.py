# tests/fake_store.py
"""
In-memory stand-in for the Order/Warehouse Store, served through httpx.MockTransport.

Mirrors what the real backend does for the endpoints the dashboard uses:
- PUT /warehouse/updateInventoryItem/{id} moves `quantity` from virtual to billed
- PUT /order/{id}/bill-type adds `quantity` to each named line item's billedQuantity
"""
from __future__ import annotations

import copy
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import httpx

BASE_URL = "http://store.test/api"


def iso_days_ago(days: int) -> str:
    d = datetime.now(timezone.utc) - timedelta(days=days)
    return d.strftime("%Y-%m-%dT%H:%M:%S.000Z")


class FakeStore:
    def __init__(self) -> None:
        self.warehouses: Dict[str, Dict[str, Any]] = {}
        self.orders: List[Dict[str, Any]] = []
        self.bookings: List[Dict[str, Any]] = []
        self.calls: List[Tuple[str, str, Any]] = []
        self.failing: Set[Tuple[str, str]] = set()
        # Called after a successful write; lets a test simulate a concurrent writer.
        self.after_write: Optional[Callable[["FakeStore"], None]] = None
        self._next_id = 1

    # ----------------------------
    # Seeding
    # ----------------------------

    def add_warehouse(
        self,
        warehouse_id: str,
        *,
        name: str = "Main",
        state: str = "Gujarat",
        city: str = "Rajkot",
        virtual: Optional[List[Dict[str, Any]]] = None,
        billed: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        w = {
            "_id": warehouse_id,
            "name": name,
            "state": state,
            "city": city,
            "virtualInventory": virtual or [],
            "billedInventory": billed or [],
        }
        self.warehouses[warehouse_id] = w
        return w

    def add_order(
        self,
        order_id: str,
        *,
        warehouse: str = "wh1",
        days_ago: int = 1,
        status: str = "created",
        items: Optional[List[Dict[str, Any]]] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        o = {
            "_id": order_id,
            "companyBargainNo": f"CB-{order_id}",
            "companyBargainDate": iso_days_ago(days_ago),
            "sellerName": "Adani Wilmar",
            "sellerLocation": "Ahmedabad",
            "sellerContact": "9800000000",
            "status": status,
            "billType": "Virtual Billed",
            "warehouse": warehouse,
            "transportType": "truck",
            "transportLocation": "Rajkot",
            "description": "",
            "paymentDays": 15,
            "reminderDays": [7, 3],
            "createdAt": iso_days_ago(days_ago),
            "updatedAt": iso_days_ago(0),
            "items": items if items is not None else [
                {"name": "Oil", "packaging": "tin", "weight": 1, "staticPrice": 1500, "quantity": 50},
            ],
        }
        o.update(extra)
        self.orders.append(o)
        return o

    def fail(self, method: str, path_prefix: str) -> None:
        self.failing.add((method, path_prefix))

    def writes(self) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] in ("POST", "PUT")]

    def order(self, order_id: str) -> Dict[str, Any]:
        return next(o for o in self.orders if o["_id"] == order_id)

    # ----------------------------
    # Transport
    # ----------------------------

    def client_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        assert path.startswith("/api/"), path
        path = path[len("/api"):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((method, path, body))

        for m, prefix in self.failing:
            if m == method and path.startswith(prefix):
                return httpx.Response(500, json={"message": "internal error"})

        resp = self._route(method, path, body, request)
        if method in ("POST", "PUT") and resp.status_code < 400 and self.after_write:
            self.after_write(self)
        return resp

    def _route(self, method: str, path: str, body: Any, request: httpx.Request) -> httpx.Response:
        parts = [p for p in path.split("/") if p]

        if parts == ["order"]:
            if method == "GET":
                return httpx.Response(200, json=copy.deepcopy(self.orders))
            if method == "POST":
                o = dict(body)
                o["_id"] = f"ord{self._next_id}"
                self._next_id += 1
                self.orders.append(o)
                return httpx.Response(201, json=o)

        if len(parts) == 3 and parts[0] == "order" and parts[2] == "bill-type" and method == "PUT":
            order = next((o for o in self.orders if o["_id"] == parts[1]), None)
            if order is None:
                return httpx.Response(404, json={"message": "Order not found"})
            for upd in body["items"]:
                line = next(it for it in order["items"] if it["name"] == upd["name"])
                line["billedQuantity"] = (line.get("billedQuantity") or 0) + upd["quantity"]
                line["billType"] = upd["billType"]
            return httpx.Response(200, json=copy.deepcopy(order))

        if len(parts) == 2 and parts[0] == "order" and method == "PUT":
            order = next((o for o in self.orders if o["_id"] == parts[1]), None)
            if order is None:
                return httpx.Response(404, json={"message": "Order not found"})
            order.update(body)
            return httpx.Response(200, json=copy.deepcopy(order))

        if parts == ["booking"]:
            if method == "GET":
                return httpx.Response(200, json=copy.deepcopy(self.bookings))
            if method == "POST":
                b = dict(body, _id=f"bk{self._next_id}")
                self._next_id += 1
                self.bookings.append(b)
                return httpx.Response(201, json=b)

        if parts == ["warehouse"]:
            if method == "GET":
                return httpx.Response(200, json=[copy.deepcopy(w) for w in self.warehouses.values()])
            if method == "POST":
                wid = f"wh{100 + self._next_id}"
                self._next_id += 1
                w = dict(body, _id=wid)
                self.warehouses[wid] = w
                return httpx.Response(201, json=w)

        if parts == ["warehouse", "filter"] and method == "GET":
            state = request.url.params.get("state")
            city = request.url.params.get("city")
            found = [
                copy.deepcopy(w) for w in self.warehouses.values()
                if w.get("state") == state and w.get("city") == city
            ]
            return httpx.Response(200, json=found)

        if len(parts) == 3 and parts[:2] == ["warehouse", "updateInventoryItem"] and method == "PUT":
            w = self.warehouses.get(parts[2])
            if w is None:
                return httpx.Response(404, json={"message": "Warehouse not found"})
            qty = body["quantity"]
            src = next(it for it in w["virtualInventory"] if it["itemName"] == body["itemName"])
            src["quantity"] -= qty
            if src["quantity"] == 0:
                w["virtualInventory"].remove(src)
            dst = next((it for it in w["billedInventory"] if it["itemName"] == body["itemName"]), None)
            if dst is None:
                w["billedInventory"].append(
                    {"itemName": body["itemName"], "weight": body.get("weight"), "quantity": qty}
                )
            else:
                dst["quantity"] += qty
            return httpx.Response(200, json=copy.deepcopy(w))

        if len(parts) == 2 and parts[0] == "warehouse" and method == "GET":
            w = self.warehouses.get(parts[1])
            if w is None:
                return httpx.Response(404, json={"message": "Warehouse not found"})
            return httpx.Response(200, json=copy.deepcopy(w))

        return httpx.Response(404, json={"message": f"no route for {method} {path}"})
