from fastapi import HTTPException, status

from core.errors import (
    DataError,
    NotFoundError,
    PersistError,
    QuantityParseError,
    ReconciliationError,
    StaleSnapshotError,
    TransferRejectedError,
)
from core.logging_config import get_logger
from core.store_client import StoreError

logger = get_logger("http")


def to_http_exception(e: Exception) -> HTTPException:
    """Map reconciliation/store errors onto the status codes the dashboard expects."""
    if isinstance(e, QuantityParseError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"message": e.message})
    if isinstance(e, TransferRejectedError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.reason, "errors": e.errors},
        )
    if isinstance(e, StaleSnapshotError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PersistError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    if isinstance(e, DataError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    if isinstance(e, StoreError):
        if e.status_code == 404:
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found in store")
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Order/warehouse store request failed")
    logger.exception("unexpected error", exc_info=e)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Unexpected error: {e}")


HANDLED_ERRORS = (ReconciliationError, StoreError)
