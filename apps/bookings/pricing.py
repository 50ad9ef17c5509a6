"""Price calculation for a reservation.

Pure functions, no database access. Amounts are ``Money`` (Decimal,
two places) end to end.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from shared.domain.exceptions import BookingValidationError
from shared.domain.value_objects import Money, TimeInterval

NIGHT = timedelta(hours=24)


class PricingError(BookingValidationError):
    """Raised for impossible pricing input (non-positive nights, negative quantities)."""


@dataclass(frozen=True)
class ServiceLine:
    unit_price: Money
    quantity: int

    @property
    def amount(self) -> Money:
        return service_line(self.unit_price, self.quantity)


def _as_money(price) -> Money:
    if isinstance(price, Money):
        return price
    try:
        return Money(Decimal(price))
    except (ArithmeticError, ValueError, TypeError) as exc:
        raise PricingError("INVALID_PRICE", f"Invalid price: {price!r}") from exc


def count_nights(interval: TimeInterval) -> int:
    """Billable nights: every started 24 hours counts as one night."""
    whole, remainder = divmod(interval.duration, NIGHT)
    nights = whole + (1 if remainder else 0)
    if nights <= 0:
        raise PricingError("INVALID_NIGHTS", "A stay must cover at least one night.")
    return nights


def room_line(price, nights: int) -> Money:
    if nights <= 0:
        raise PricingError("INVALID_NIGHTS", "A stay must cover at least one night.")
    return _as_money(price) * nights


def service_line(price, quantity: int) -> Money:
    if quantity < 0:
        raise PricingError("INVALID_QUANTITY", f"Quantity cannot be negative: {quantity}")
    return _as_money(price) * quantity


def compute_total(
    room_prices: Sequence,
    nights: int,
    services: Iterable[ServiceLine] = (),
) -> Money:
    """
    Total of a reservation

    total = sum(room price * nights) + sum(service price * quantity)
    """
    if nights <= 0:
        raise PricingError("INVALID_NIGHTS", "A stay must cover at least one night.")

    total = Money.zero()
    for price in room_prices:
        total += room_line(price, nights)
    for line in services:
        total += line.amount
    return total
