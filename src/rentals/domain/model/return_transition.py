"""Return transitions — requested state changes for line items.

A ReturnTransition is what the return planner produces and what the
order repository applies.  It carries no behaviour of its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.line_item import ReturnStatus
from rentals.domain.model.value_objects import Money


@dataclass(frozen=True)
class ReturnTransition:
    """One requested change of an item's return status.

    Invariants:
    - only RETURNED transitions carry a timestamp
    - NOT_YET_RETURNED (a reversal) carries no timestamp and no quantity
    """

    item_id: str
    target_status: ReturnStatus
    returned_at: datetime | None = None
    quantity: int | None = None
    damage_cost: Money | None = None
    damage_description: str | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if self.target_status == ReturnStatus.RETURNED and self.returned_at is None:
            raise ValidationError("A return needs a return timestamp")
        if self.target_status != ReturnStatus.RETURNED and self.returned_at is not None:
            raise ValidationError(
                f"A {self.target_status.value} transition cannot carry a timestamp"
            )
        if self.target_status == ReturnStatus.NOT_YET_RETURNED and self.quantity is not None:
            raise ValidationError("A reversal cannot carry a quantity")
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Transition quantity must be positive")


@dataclass(frozen=True)
class ReturnPlan:
    """The two batches of a return operation.

    ``first_batch`` (returns, reversals, whole-line missing) is submitted
    together with the late fee.  ``missing_batch`` holds the remainders
    of partial returns and may only be submitted once the first batch is
    acknowledged.
    """

    first_batch: list[ReturnTransition] = field(default_factory=list)
    missing_batch: list[ReturnTransition] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.first_batch and not self.missing_batch
