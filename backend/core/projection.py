"""
Order history projection: warehouse scope -> status -> time period -> newest first.

Stateless; re-run whenever the order list or the filter changes.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from core.errors import DataError
from schemas.orders import OrderFilterIn, OrderRead

ALL_STATUSES = "All"
PERIOD_DAYS = {"last7Days": 7, "last30Days": 30}


@dataclass(frozen=True)
class OrderFilter:
    status: str = ALL_STATUSES
    period: str = "all"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_schema(cls, f: OrderFilterIn) -> "OrderFilter":
        return cls(status=f.status, period=f.period, start_date=f.start_date, end_date=f.end_date)


def parse_bargain_date(value: Optional[str]) -> datetime:
    """Parse an ISO timestamp from the store. Naive values are taken as UTC."""
    text = (value or "").strip()
    if not text:
        raise DataError(f"Invalid date: {value!r}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise DataError(f"Invalid date: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _in_period(when: datetime, f: OrderFilter, now: datetime) -> bool:
    days = PERIOD_DAYS.get(f.period)
    if days is not None:
        return when >= now - timedelta(days=days)
    if f.period == "custom" and f.start_date and f.end_date:
        d = when.astimezone(timezone.utc).date()
        return f.start_date <= d <= f.end_date
    return True


def project_orders(
    orders: Iterable[OrderRead],
    warehouse_id: str,
    order_filter: OrderFilter = OrderFilter(),
    now: Optional[datetime] = None,
) -> List[OrderRead]:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    rows: List[Tuple[datetime, OrderRead]] = []
    for o in orders:
        if o.warehouse != warehouse_id:
            continue
        if order_filter.status != ALL_STATUSES and o.status != order_filter.status:
            continue
        when = parse_bargain_date(o.company_bargain_date)
        if not _in_period(when, order_filter, now):
            continue
        rows.append((when, o))

    rows.sort(key=lambda r: r[0], reverse=True)
    return [o for _when, o in rows]
