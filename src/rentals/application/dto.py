"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rentals.domain.model.return_transition import ReturnTransition


@dataclass(frozen=True)
class LineItemSpec:
    """Input: one item the operator wants on the order."""

    product_name: str
    quantity: int
    price_per_day: str
    photo_url: str = ""


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    id: str | None
    product_name: str
    quantity: int
    price_per_day: str  # formatted, e.g. "₹100.00"
    days: int
    line_total: str  # quantity x price x days
    return_status: str
    returned_quantity: int
    pending_quantity: int
    damage_cost: str | None = None
    missing_note: str | None = None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: str
    invoice_number: str
    customer_id: str
    customer_name: str | None
    status: str
    start_datetime: str
    end_datetime: str
    items: list[OrderLineItemDTO]
    subtotal: str
    tax_amount: str
    total_amount: str
    late_fee: str
    damage_total: str
    security_deposit: str | None
    is_late: bool
    days_overdue: int


@dataclass(frozen=True)
class TimelineEntryDTO:
    """Output: one event in an order's history, oldest first."""

    action: str
    user_id: str | None
    created_at: str
    item_id: str | None = None
    previous_status: str | None = None
    new_status: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DraftTotalsDTO:
    """Output: live totals for a draft.

    While the tax profile is still being resolved ``pending`` is True,
    the tax is zero and the grand total equals the subtotal.
    """

    days: int
    subtotal: str
    tax_amount: str
    grand_total: str
    pending: bool = False


@dataclass(frozen=True)
class ReturnOutcome:
    """Output: what happened to a return request.

    ``warning`` is set when the first batch was committed but the
    missing-remainder batch was not; ``pending_missing_batch`` then holds
    the transitions to retry.
    """

    order_id: str
    applied: int
    missing_applied: int
    warning: str | None = None
    pending_missing_batch: list[ReturnTransition] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.warning is not None
