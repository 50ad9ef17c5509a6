"""
Common Value Objects

Value objects used across the booking and finance contexts:
- Money: Monetary amount in a single currency, fixed-point
- TimeInterval: Half-open reservation window [start, end)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject

CENT = Decimal('0.01')
DEFAULT_CURRENCY = 'VND'


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are kept as Decimal quantized to two places so that totals
    are exact. Floats are refused outright.
    """
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.amount, float):
            raise TypeError("Money amount must be Decimal or int, not float")
        amount = Decimal(self.amount).quantize(CENT, rounding=ROUND_HALF_UP)
        if amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        object.__setattr__(self, 'amount', amount)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> 'Money':
        return cls(Decimal('0'), currency)

    @classmethod
    def from_minor_units(cls, value: int, currency: str = DEFAULT_CURRENCY) -> 'Money':
        """Build from an integer count of hundredths (gateway wire format)."""
        return cls(Decimal(int(value)) / 100, currency)

    @property
    def minor_units(self) -> int:
        return int(self.amount * 100)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        """Multiply by a whole count (nights, quantity)"""
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class TimeInterval(ValueObject):
    """
    Reservation window

    start is inclusive and end is exclusive, so back-to-back windows
    ([10:00, 11:00) and [11:00, 12:00)) do not overlap.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start ({self.start}) must be before end ({self.end})")

    def overlaps_with(self, other: 'TimeInterval') -> bool:
        """
        Check if this interval shares at least one instant with another

        Overlap formula: start1 < end2 AND start2 < end1
        """
        if not isinstance(other, TimeInterval):
            raise TypeError("Can only check overlap with another TimeInterval")
        return self.start < other.end and other.start < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeInterval({self.start!r}, {self.end!r})"
