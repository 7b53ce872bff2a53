import pytest
from pydantic import ValidationError

from schemas.bookings import BookingCreate

PICKUP_BOOKING = {
    "companyBargainDate": "2024-06-01",
    "companyBargainNo": "BK-100",
    "buyer": {"buyer": "Sharma Traders", "buyerLocation": "Surat", "buyerContact": "9811111111"},
    "items": [{"name": "Oil", "packaging": "tin", "weight": 15, "staticPrice": 1500, "quantity": 20}],
    "deliveryOption": "Pickup",
    "warehouse": "wh1",
}


def _delivery(**address):
    return dict(PICKUP_BOOKING, deliveryOption="Delivery", warehouse=None, deliveryAddress=address)


def test_booking_defaults():
    booking = BookingCreate.model_validate(PICKUP_BOOKING)
    assert booking.validity == 21
    assert booking.status == "created"
    assert booking.reminder_days == [7, 3, 1]


def test_pickup_needs_a_warehouse():
    with pytest.raises(ValidationError) as exc:
        BookingCreate.model_validate(dict(PICKUP_BOOKING, warehouse=" "))
    assert "Warehouse for Pickup option is required" in str(exc.value)


def test_delivery_needs_an_address():
    with pytest.raises(ValidationError) as exc:
        BookingCreate.model_validate(_delivery(addressLine1="12 MG Road", state="Gujarat"))
    assert "City, Pin Code required for Delivery option" in str(exc.value)

    ok = BookingCreate.model_validate(
        _delivery(addressLine1="12 MG Road", city="Surat", state="Gujarat", pinCode="395003")
    )
    assert ok.warehouse is None


@pytest.mark.parametrize(
    "change",
    [
        {"buyer": {"buyer": "", "buyerLocation": "Surat", "buyerContact": "1"}},
        {"items": []},
        {"items": [{"name": "Oil", "weight": 15, "staticPrice": 1500, "quantity": 0}]},
        {"items": [{"name": "Oil", "weight": -1, "staticPrice": 1500, "quantity": 1}]},
        {"companyBargainNo": "  "},
        {"deliveryOption": "Courier"},
    ],
)
def test_invalid_bookings(change):
    with pytest.raises(ValidationError):
        BookingCreate.model_validate(dict(PICKUP_BOOKING, **change))


@pytest.mark.asyncio
async def test_create_and_list_bookings(client, fake_store):
    r = await client.post("/bookings/", json=PICKUP_BOOKING)
    assert r.status_code == 201, r.text

    (write,) = fake_store.writes()
    assert write[:2] == ("POST", "/booking")
    assert write[2]["buyer"]["buyerLocation"] == "Surat"
    assert write[2]["validity"] == 21

    delivery = _delivery(addressLine1="12 MG Road", city="Surat", state="Gujarat", pinCode="395003")
    assert (await client.post("/bookings/", json=delivery)).status_code == 201

    listed = await client.get("/bookings/")
    assert [b["companyBargainNo"] for b in listed.json()] == ["BK-100", "BK-100"]

    scoped = await client.get("/bookings/", params={"warehouse": "wh1"})
    assert [b["deliveryOption"] for b in scoped.json()] == ["Pickup"]


@pytest.mark.asyncio
async def test_invalid_booking_is_not_sent(client, fake_store):
    r = await client.post("/bookings/", json=_delivery(addressLine1="12 MG Road"))
    assert r.status_code == 422
    assert fake_store.writes() == []


@pytest.mark.asyncio
async def test_booking_store_failure(client, fake_store):
    fake_store.fail("POST", "/booking")
    r = await client.post("/bookings/", json=PICKUP_BOOKING)
    assert r.status_code == 502
