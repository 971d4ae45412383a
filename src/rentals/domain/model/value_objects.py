"""Money and Quantity.

Both are frozen and validate on construction, so an order can never hold
a negative amount or a zero-unit line.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rentals.domain.exceptions import ValidationError

PAISE = Decimal("0.01")
RUPEE_SIGN = "₹"


@dataclass(frozen=True)
class Money:
    """A non-negative rupee amount.

    Amounts are kept at whatever precision the arithmetic produced;
    ``scaled()`` is the one place rounding to paise happens.
    """

    amount: Decimal
    currency: str = "INR"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money needs a Decimal amount, not {type(self.amount).__name__}"
            )
        if self.amount.is_signed() and self.amount != 0:
            raise ValidationError(f"Money cannot be negative ({self.amount})")

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._matching(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        difference = self.amount - self._matching(other).amount
        if difference < 0:
            raise ValidationError(f"Cannot take {other} from {self}: result is negative")
        return Money(difference, self.currency)

    def __mul__(self, times: int) -> Money:
        if isinstance(times, bool) or not isinstance(times, int):
            raise TypeError(f"Money can only be multiplied by a count, not {times!r}")
        return Money(self.amount * times, self.currency)

    def scaled(self, factor: Decimal) -> Money:
        """``self * factor`` rounded half-up to the paisa."""
        return Money(
            (self.amount * factor).quantize(PAISE, rounding=ROUND_HALF_UP),
            self.currency,
        )

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{RUPEE_SIGN}{self.amount:.2f}"

    def _matching(self, other: Money) -> Money:
        if other.currency != self.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )
        return other

    @staticmethod
    def of(amount: str | int | Decimal) -> Money:
        """Parse user or file input such as ``"150"`` or ``"99.50"``."""
        try:
            value = Decimal(str(amount).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValidationError(f"Invalid money amount: {amount!r}")
        return Money(value)

    @staticmethod
    def zero() -> Money:
        return Money(Decimal(0))


@dataclass(frozen=True)
class Quantity:
    """Units of a product on one line; at least one."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be a whole number, got {self.value!r}"
            )
        if self.value < 1:
            raise ValidationError(f"Quantity must be positive, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)
