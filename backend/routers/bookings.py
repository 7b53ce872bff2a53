from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError

from core.errors import DataError
from core.http_errors import HANDLED_ERRORS, to_http_exception
from core.logging_config import get_logger
from core.store_client import StoreClient, get_store_client
from schemas.bookings import BookingCreate, BookingRead

logger = get_logger("bookings")

router = APIRouter()


@router.get("/", response_model=List[BookingRead])
async def list_bookings(
    warehouse: Optional[str] = Query(None),
    store: StoreClient = Depends(get_store_client),
):
    try:
        data = await store.list_bookings()
        try:
            bookings = [BookingRead.model_validate(b) for b in data]
        except ValidationError as e:
            raise DataError(f"Malformed booking from store: {e}") from e
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    if warehouse:
        bookings = [b for b in bookings if b.warehouse == warehouse]
    return bookings


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    store: StoreClient = Depends(get_store_client),
):
    """
    Create a buyer-side booking.

    Pickup bookings need a warehouse; Delivery bookings need address line 1,
    city, state and pin code.
    """
    data = payload.model_dump(mode="json", by_alias=True)
    try:
        created = await store.create_booking(data)
    except HANDLED_ERRORS as e:
        raise to_http_exception(e) from e
    logger.info("booking created: %s (%s)", payload.company_bargain_no, payload.delivery_option)
    return created or {}
