from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from core.errors import QuantityParseError

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class TransferDecision:
    accepted: bool
    reason: Optional[str] = None


ACCEPTED = TransferDecision(accepted=True)


def parse_quantity(raw) -> Decimal:
    """
    Turn user-entered quantity text into a Decimal.

    Empty input means "nothing requested" and parses to 0. Anything else that
    is not a finite, non-negative number raises QuantityParseError.
    """
    if raw is None:
        return Decimal(0)
    if isinstance(raw, bool):
        raise QuantityParseError(raw)
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = str(raw).strip()
        if not text:
            return Decimal(0)
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise QuantityParseError(raw)
    if not value.is_finite():
        raise QuantityParseError(raw)
    if value < 0:
        raise QuantityParseError(raw, "Quantity cannot be negative")
    return value


def format_quantity(value: Number) -> str:
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def validate_transfer(requested: Number, available: Number) -> TransferDecision:
    """Pure accept/reject decision for moving `requested` out of a bucket holding `available`."""
    req = requested if isinstance(requested, Decimal) else Decimal(str(requested))
    avail = available if isinstance(available, Decimal) else Decimal(str(available))
    if req > avail:
        return TransferDecision(
            accepted=False,
            reason=f"Quantity exceeds available virtual quantity of {format_quantity(avail)}",
        )
    return ACCEPTED
