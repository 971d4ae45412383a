"""LineItem entity — one rentable unit line within an order.

Line items live inside a draft while an order is authored and inside a
RentalOrder once persisted.  The return-tracking fields are only ever
changed through ``mark_returned()``, ``mark_missing()`` and ``reopen()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.value_objects import Money, Quantity


class ReturnStatus(Enum):
    NOT_YET_RETURNED = "not_yet_returned"
    RETURNED = "returned"
    MISSING = "missing"


@dataclass
class LineItem:
    """A product/quantity/price row.

    ``line_total`` is quantity x price-per-day.  The day multiplier is
    applied only when the order is persisted (see ``billed_total``) so
    draft subtotals never count days twice.
    """

    photo_url: str
    quantity: Quantity
    price_per_day: Money
    days: int = 1
    product_name: str | None = None
    id: str | None = None
    return_status: ReturnStatus = ReturnStatus.NOT_YET_RETURNED
    actual_return_date: datetime | None = None
    late_return: bool | None = None
    returned_quantity: int | None = None
    damage_cost: Money | None = None
    damage_description: str | None = None
    missing_note: str | None = None

    def __post_init__(self) -> None:
        if self.days < 0:
            raise ValidationError("Rental days cannot be negative")
        if self.returned_quantity is not None and not (
            0 <= self.returned_quantity <= self.quantity.value
        ):
            raise ValidationError(
                f"Returned quantity {self.returned_quantity} exceeds "
                f"ordered quantity {self.quantity.value}"
            )

    # --- Computed properties --------------------------------------------------

    @property
    def line_total(self) -> Money:
        return self.price_per_day * self.quantity.value

    @property
    def billed_total(self) -> Money:
        return self.line_total * self.days

    @property
    def identity_key(self) -> tuple:
        """Deduplication key: the persisted id, else the descriptive fields."""
        if self.id:
            return ("id", self.id)
        return (
            "key",
            self.photo_url,
            self.product_name or "",
            self.quantity.value,
            self.price_per_day.amount,
            self.days,
            self.line_total.amount,
        )

    @property
    def is_returned(self) -> bool:
        return self.return_status == ReturnStatus.RETURNED

    @property
    def is_missing(self) -> bool:
        return self.return_status == ReturnStatus.MISSING

    @property
    def is_pending(self) -> bool:
        return self.return_status == ReturnStatus.NOT_YET_RETURNED

    @property
    def already_returned_quantity(self) -> int:
        if self.returned_quantity is not None:
            return self.returned_quantity
        return self.quantity.value if self.is_returned else 0

    @property
    def pending_quantity(self) -> int:
        """Units still out with the customer."""
        if self.is_returned:
            returned = self.returned_quantity
            if returned is None:
                returned = self.quantity.value
        else:
            returned = self.returned_quantity or 0
        return max(0, min(self.quantity.value, self.quantity.value - returned))

    # --- Return transitions ---------------------------------------------------

    def mark_returned(self, qty: int, at: datetime, late: bool) -> None:
        """Record that *qty* more units came back at *at*."""
        if qty <= 0:
            raise ValidationError("Return quantity must be positive")
        if qty > self.pending_quantity:
            raise ValidationError(
                f"Cannot return {qty} of {self.display_name} "
                f"— only {self.pending_quantity} pending"
            )
        self.returned_quantity = self.already_returned_quantity + qty
        self.return_status = ReturnStatus.RETURNED
        self.actual_return_date = at
        self.late_return = late

    def mark_missing(
        self,
        note: str | None,
        damage_cost: Money | None,
        damage_description: str | None,
    ) -> None:
        self.return_status = ReturnStatus.MISSING
        self.missing_note = note
        if damage_cost is not None:
            self.damage_cost = damage_cost
        if damage_description is not None:
            self.damage_description = damage_description

    def reopen(self) -> None:
        """Reverse a previous return: the whole line is outstanding again."""
        self.return_status = ReturnStatus.NOT_YET_RETURNED
        self.returned_quantity = None
        self.actual_return_date = None
        self.late_return = None
        self.missing_note = None

    @property
    def display_name(self) -> str:
        return self.product_name or "Unnamed Product"
