from datetime import datetime
from io import BytesIO
from typing import Iterable, Optional

import openpyxl
from openpyxl.styles import Font

from core.projection import parse_bargain_date
from schemas.orders import OrderRead

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ORDER_COLUMNS = [
    "Company Bargain No",
    "Company Bargain Date",
    "Seller Name",
    "Seller Location",
    "Seller Contact",
    "Status",
    "Transport Type",
    "Transport Location",
    "Bill Type",
    "Description",
    "Created At",
    "Updated At",
    "Payment Days",
    "Reminder Days",
]


def format_date(value: Optional[str], *, required: bool = True) -> str:
    """
    DD-MM-YYYY. An unparsable date raises DataError instead of being blanked.

    A missing optional timestamp renders as an empty cell.
    """
    if value is None and not required:
        return ""
    d: datetime = parse_bargain_date(value)
    return d.strftime("%d-%m-%Y")


def _order_row(o: OrderRead) -> list:
    return [
        o.company_bargain_no,
        format_date(o.company_bargain_date),
        o.seller_name,
        o.seller_location,
        o.seller_contact,
        o.status,
        o.transport_type,
        o.transport_location,
        o.bill_type,
        o.description,
        format_date(o.created_at, required=False),
        format_date(o.updated_at, required=False),
        o.payment_days,
        ", ".join(str(d) for d in o.reminder_days),
    ]


def orders_workbook(orders: Iterable[OrderRead]) -> bytes:
    # Build every row first so a bad date fails before anything is written.
    rows = [_order_row(o) for o in orders]

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Orders"
    ws.append(ORDER_COLUMNS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
