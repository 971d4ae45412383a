"""RentalOrder aggregate — a persisted rental order.

The RentalOrder owns its line items and its return audit trail.  All
return bookkeeping (status per item, late flags, the late fee and the
resulting order status) is enforced here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.customer import CustomerRef
from rentals.domain.model.dates import day_of, parse_timestamp
from rentals.domain.model.line_item import LineItem, ReturnStatus
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.model.value_objects import Money


class OrderStatus(Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    PENDING_RETURN = "pending_return"
    PARTIALLY_RETURNED = "partially_returned"
    COMPLETED = "completed"
    COMPLETED_WITH_ISSUES = "completed_with_issues"
    FLAGGED = "flagged"
    CANCELLED = "cancelled"


_RETURN_DONE = (
    OrderStatus.PARTIALLY_RETURNED,
    OrderStatus.COMPLETED,
    OrderStatus.COMPLETED_WITH_ISSUES,
)
_NOT_LATE = (
    OrderStatus.SCHEDULED,
    OrderStatus.COMPLETED,
    OrderStatus.COMPLETED_WITH_ISSUES,
    OrderStatus.CANCELLED,
)


@dataclass(frozen=True)
class ReturnAuditEntry:
    """One line of the order timeline."""

    action: str
    user_id: str
    created_at: datetime
    item_id: str | None = None
    previous_status: str | None = None
    new_status: str | None = None
    notes: str | None = None


@dataclass
class RentalOrder:
    """Aggregate root for rental orders.

    Use ``RentalOrder.create()`` for new orders.  The ``__init__`` stays
    plain so repositories can reconstitute persisted orders without
    re-validating.
    """

    id: str | None
    customer: CustomerRef
    invoice_number: str
    start_datetime: str
    end_datetime: str
    items: list[LineItem]
    status: OrderStatus = OrderStatus.ACTIVE
    subtotal: Money = field(default_factory=Money.zero)
    tax_amount: Money = field(default_factory=Money.zero)
    total_amount: Money = field(default_factory=Money.zero)
    security_deposit: Money | None = None
    late_fee: Money = field(default_factory=Money.zero)
    staff_id: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    audit_log: list[ReturnAuditEntry] = field(default_factory=list)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer: CustomerRef,
        invoice_number: str,
        start_datetime: str,
        end_datetime: str,
        items: list[LineItem],
        subtotal: Money,
        tax_amount: Money,
        total_amount: Money,
        security_deposit: Money | None = None,
        staff_id: str | None = None,
        today: date | None = None,
    ) -> RentalOrder:
        """Create a new order; future start dates are scheduled."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        start_day = day_of(start_datetime)
        if start_day is None:
            raise ValidationError(f"Invalid start date: {start_datetime!r}")

        today = today or date.today()
        status = OrderStatus.SCHEDULED if start_day > today else OrderStatus.ACTIVE
        return RentalOrder(
            id=None,
            customer=customer,
            invoice_number=invoice_number,
            start_datetime=start_datetime,
            end_datetime=end_datetime,
            items=list(items),
            status=status,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            security_deposit=security_deposit,
            staff_id=staff_id,
        )

    def revise(
        self,
        customer: CustomerRef,
        invoice_number: str,
        start_datetime: str,
        end_datetime: str,
        items: list[LineItem],
        subtotal: Money,
        tax_amount: Money,
        total_amount: Money,
        security_deposit: Money | None,
    ) -> None:
        """Replace the editable fields; items are replaced, never merged."""
        if not items:
            raise ValidationError("Order must contain at least one item")
        self.customer = customer
        self.invoice_number = invoice_number
        self.start_datetime = start_datetime
        self.end_datetime = end_datetime
        self.items = list(items)
        self.subtotal = subtotal
        self.tax_amount = tax_amount
        self.total_amount = total_amount + self.late_fee
        self.security_deposit = security_deposit

    # --- Returns --------------------------------------------------------------

    def apply_return_transitions(
        self,
        transitions: list[ReturnTransition],
        user_id: str,
        late_fee: Money | None = None,
        now: datetime | None = None,
    ) -> None:
        """Apply a batch of return transitions atomically.

        Phase 1 validates every transition against the current items;
        phase 2 mutates.  A batch that fails validation leaves the order
        untouched.  ``late_fee`` of None leaves the recorded fee as is.
        A scheduled order whose start day is on or before *now* is
        started on the way.
        """
        now = now or datetime.now()
        starting = self.status == OrderStatus.SCHEDULED and self._has_started(now)
        if self.status == OrderStatus.CANCELLED or (
            self.status == OrderStatus.SCHEDULED and not starting
        ):
            raise ValidationError(
                f"Cannot process returns for an order in {self.status.value} status"
            )

        # Phase 1: validate
        targets: list[tuple[LineItem, ReturnTransition]] = []
        for transition in transitions:
            item = self._find_item(transition.item_id)
            if transition.target_status == ReturnStatus.RETURNED:
                qty = transition.quantity or item.pending_quantity
                if qty > item.pending_quantity:
                    raise ValidationError(
                        f"Cannot return {qty} of {item.display_name} "
                        f"— only {item.pending_quantity} pending"
                    )
            targets.append((item, transition))

        # Phase 2: mutate
        if starting:
            self._set_status(OrderStatus.ACTIVE, user_id, now, action="rental_started")
        for item, transition in targets:
            self._apply_one(item, transition, user_id, now)

        if late_fee is not None:
            self.set_late_fee(late_fee, user_id, now)

        self._resolve_status()

    def set_late_fee(self, fee: Money, user_id: str, now: datetime | None = None) -> None:
        """Replace the recorded late fee, keeping the total in step."""
        if fee == self.late_fee:
            return
        self.total_amount = self.total_amount - self.late_fee + fee
        self.audit_log.append(
            ReturnAuditEntry(
                action="late_fee_updated",
                user_id=user_id,
                created_at=now or datetime.now(),
                notes=f"{self.late_fee} -> {fee}",
            )
        )
        self.late_fee = fee

    # --- Status changes -------------------------------------------------------

    def start_rental(self, user_id: str, now: datetime | None = None) -> None:
        """Hand a scheduled order to the customer; the rental starts *now*."""
        if self.status != OrderStatus.SCHEDULED:
            raise ValidationError(
                f"Only scheduled orders can be started, this one is {self.status.value}"
            )
        now = now or datetime.now()
        self.start_datetime = now.isoformat(timespec="seconds")
        self._set_status(OrderStatus.ACTIVE, user_id, now, action="rental_started")

    def change_status(
        self,
        status: OrderStatus,
        user_id: str,
        late_fee: Money | None = None,
        now: datetime | None = None,
    ) -> None:
        """Set the status by hand (flag, cancel, mark pending return...).

        Cancelled orders are final.  ``late_fee`` of None leaves the fee
        as recorded.
        """
        if self.status == OrderStatus.CANCELLED and status != OrderStatus.CANCELLED:
            raise ValidationError("A cancelled order cannot change status")
        now = now or datetime.now()
        if late_fee is not None:
            self.set_late_fee(late_fee, user_id, now)
        if status != self.status:
            self._set_status(status, user_id, now, action="status_changed")

    # --- Computed properties --------------------------------------------------

    def is_late(self, now: datetime | None = None) -> bool:
        if self.status in _NOT_LATE:
            return False
        end = parse_timestamp(self.end_datetime)
        if end is None:
            return False
        return (now or datetime.now()) > end

    def days_overdue(self, now: datetime | None = None) -> int:
        now = now or datetime.now()
        if not self.is_late(now):
            return 0
        end = parse_timestamp(self.end_datetime)
        return (now - end).days

    @property
    def damage_total(self) -> Money:
        result = Money.zero()
        for item in self.items:
            if item.damage_cost is not None:
                result = result + item.damage_cost
        return result

    def get_item(self, item_id: str) -> LineItem:
        return self._find_item(item_id)

    # --- Internal helpers -----------------------------------------------------

    def _apply_one(
        self,
        item: LineItem,
        transition: ReturnTransition,
        user_id: str,
        now: datetime,
    ) -> None:
        previous = item.return_status
        target = transition.target_status

        if target == ReturnStatus.RETURNED:
            end = parse_timestamp(self.end_datetime)
            returned_at = transition.returned_at
            late = end is not None and returned_at > end
            item.mark_returned(
                transition.quantity or item.pending_quantity, returned_at, late
            )
            if transition.damage_cost is not None:
                item.damage_cost = transition.damage_cost
            if transition.damage_description is not None:
                item.damage_description = transition.damage_description
            action = "item_returned"
        elif target == ReturnStatus.MISSING:
            if item.is_missing and item.missing_note == transition.note:
                return
            item.mark_missing(
                transition.note,
                transition.damage_cost,
                transition.damage_description,
            )
            action = "item_missing"
        else:
            item.reopen()
            action = "item_unreturned"

        self.audit_log.append(
            ReturnAuditEntry(
                action=action,
                user_id=user_id,
                created_at=now,
                item_id=item.id,
                previous_status=previous.value,
                new_status=target.value,
                notes=transition.note,
            )
        )

    def _has_started(self, now: datetime) -> bool:
        start_day = day_of(self.start_datetime)
        return start_day is not None and start_day <= now.date()

    def _set_status(
        self, status: OrderStatus, user_id: str, now: datetime, action: str
    ) -> None:
        self.audit_log.append(
            ReturnAuditEntry(
                action=action,
                user_id=user_id,
                created_at=now,
                previous_status=self.status.value,
                new_status=status.value,
            )
        )
        self.status = status

    def _resolve_status(self) -> None:
        returned = [item.is_returned for item in self.items]
        missing = [item.is_missing for item in self.items]
        pending = [item.is_pending for item in self.items]

        if all(returned):
            self.status = OrderStatus.COMPLETED
        elif not any(pending):
            self.status = OrderStatus.COMPLETED_WITH_ISSUES
        elif any(returned) or any(missing):
            self.status = OrderStatus.PARTIALLY_RETURNED
        elif self.status in _RETURN_DONE:
            self.status = OrderStatus.ACTIVE

    def _find_item(self, item_id: str) -> LineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ValidationError(f"Item '{item_id}' not found in this order")
