"""
Typed errors raised by the reconciliation core.

Routers translate these into HTTP responses; nothing below the router layer
knows about status codes.
"""
from typing import Dict, Optional


class ReconciliationError(Exception):
    """Base class for everything the reconciliation core raises."""


class QuantityParseError(ReconciliationError):
    def __init__(self, raw: object, message: str = "Quantity must be a non-negative number"):
        super().__init__(message)
        self.raw = raw
        self.message = message


class TransferRejectedError(ReconciliationError):
    """The validator rejected a transfer (single item) or a billing batch."""

    def __init__(self, reason: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(reason)
        self.reason = reason
        self.errors = errors or {}


class StaleSnapshotError(ReconciliationError):
    """The caller's view no longer matches what the store holds."""


class NotFoundError(ReconciliationError):
    pass


class PersistError(ReconciliationError):
    """The store call persisting a transfer failed. Nothing was mutated locally."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class DataError(ReconciliationError):
    """The store returned data we refuse to guess about (e.g. an invalid date)."""
