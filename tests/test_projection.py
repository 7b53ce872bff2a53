from datetime import date, datetime, timezone

import pytest

from core.errors import DataError
from core.projection import OrderFilter, parse_bargain_date, project_orders
from schemas.orders import OrderRead

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def _order(oid, when, status="created", warehouse="wh1"):
    return OrderRead.model_validate(
        {"_id": oid, "companyBargainDate": when, "status": status, "warehouse": warehouse, "items": []}
    )


@pytest.fixture
def orders():
    return [
        _order("a", "2024-06-01T10:00:00.000Z"),
        _order("b", "2024-06-28T08:00:00.000Z", status="billed"),
        _order("c", "2024-06-25T00:00:00Z"),
        _order("d", "2024-06-29T00:00:00Z", warehouse="wh2"),
        _order("e", "2024-04-10T00:00:00"),
    ]


def _ids(rows):
    return [o.id for o in rows]


def test_scopes_to_warehouse_and_sorts_newest_first(orders):
    assert _ids(project_orders(orders, "wh1", now=NOW)) == ["b", "c", "a", "e"]


def test_status_filter(orders):
    assert _ids(project_orders(orders, "wh1", OrderFilter(status="billed"), now=NOW)) == ["b"]
    assert _ids(project_orders(orders, "wh1", OrderFilter(status="All"), now=NOW)) == ["b", "c", "a", "e"]


def test_relative_periods(orders):
    assert _ids(project_orders(orders, "wh1", OrderFilter(period="last7Days"), now=NOW)) == ["b", "c"]
    assert _ids(project_orders(orders, "wh1", OrderFilter(period="last30Days"), now=NOW)) == ["b", "c", "a"]


def test_custom_range_is_inclusive_by_date(orders):
    f = OrderFilter(period="custom", start_date=date(2024, 6, 1), end_date=date(2024, 6, 25))
    assert _ids(project_orders(orders, "wh1", f, now=NOW)) == ["c", "a"]


def test_custom_range_needs_both_bounds(orders):
    f = OrderFilter(period="custom", start_date=date(2024, 6, 26))
    assert len(project_orders(orders, "wh1", f, now=NOW)) == 4


def test_projection_is_idempotent(orders):
    f = OrderFilter(period="last30Days")
    once = project_orders(orders, "wh1", f, now=NOW)
    assert _ids(project_orders(once, "wh1", f, now=NOW)) == _ids(once)


def test_equal_dates_keep_input_order():
    rows = [_order("x", "2024-06-01T00:00:00Z"), _order("y", "2024-06-01T00:00:00Z")]
    assert _ids(project_orders(rows, "wh1", now=NOW)) == ["x", "y"]


def test_invalid_date_is_a_data_error(orders):
    orders.append(_order("bad", "not a date"))
    with pytest.raises(DataError):
        project_orders(orders, "wh1", now=NOW)


def test_parse_bargain_date():
    assert parse_bargain_date("2024-06-01T10:00:00.000Z") == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)
    assert parse_bargain_date("2024-06-01").tzinfo == timezone.utc
    with pytest.raises(DataError):
        parse_bargain_date("")
