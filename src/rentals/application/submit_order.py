"""Application service: Submit Order use case.

Validates a draft, computes its totals under the resolved tax profile,
flattens its items for persistence and creates or updates the order.
Validation happens before any repository call, so a rejected draft
leaves nothing behind.  The draft is cleared only after a successful
save.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable

from rentals.application.bounded_call import call_with_timeout
from rentals.application.dto import OrderDTO
from rentals.application.show_order import to_order_dto
from rentals.domain.exceptions import EntityNotFoundError, ValidationError
from rentals.domain.model.draft import OrderDraft
from rentals.domain.model.line_item import LineItem
from rentals.domain.model.order import RentalOrder
from rentals.domain.model.value_objects import Money
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.service import financials
from rentals.domain.service.tax_profile_resolver import TaxProfileResolver

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "RNT"


def generate_invoice_number(now: datetime | None = None) -> str:
    """Invoice numbers look like RNT-20261017-0042."""
    now = now or datetime.now()
    return f"{INVOICE_PREFIX}-{now:%Y%m%d}-{random.randint(0, 9999):04d}"


class SubmitOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        resolver: TaxProfileResolver,
        default_tax_rate: Decimal = financials.DEFAULT_TAX_RATE,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._order_repo = order_repo
        self._resolver = resolver
        self._default_tax_rate = default_tax_rate
        self._timeout = timeout
        self._clock = clock

    def handle(self, draft: OrderDraft, user_id: str) -> OrderDTO:
        """Persist *draft* as a new order, or as an edit of the loaded one.

        Steps:
        1. Validate the draft (customer, dates, invoice, items).
        2. Resolve the tax profile the user bills under.
        3. Compute subtotal, tax and grand total from the draft items.
        4. Stamp every item with the rental days and save.
        """
        days = self._validate(draft)
        editing = draft.order_id is not None

        invoice_number = draft.invoice_number.strip()
        if not invoice_number:
            invoice_number = generate_invoice_number(self._clock())

        profile = self._resolver.resolve(user_id)
        subtotal = financials.subtotal(draft.items)
        tax = financials.tax_amount(subtotal, profile, self._default_tax_rate)
        total = financials.grand_total(subtotal, profile, self._default_tax_rate)

        items = [replace(item, days=days) for item in draft.items]

        if editing:
            order = self._update(draft, invoice_number, items, subtotal, tax, total)
        else:
            order = RentalOrder.create(
                customer=draft.customer,
                invoice_number=invoice_number,
                start_datetime=draft.start_date,
                end_datetime=draft.end_date,
                items=items,
                subtotal=subtotal,
                tax_amount=tax,
                total_amount=total,
                security_deposit=draft.security_deposit,
                staff_id=user_id,
                today=self._clock().date(),
            )
            call_with_timeout(self._order_repo.create, order, timeout=self._timeout)

        logger.info(
            "Order %s %s: %d items, total %s",
            order.id, "updated" if editing else "created", len(items), order.total_amount,
        )
        draft.clear()
        return to_order_dto(order, self._clock())

    # --- Internal helpers -----------------------------------------------------

    def _update(
        self,
        draft: OrderDraft,
        invoice_number: str,
        items: list[LineItem],
        subtotal: Money,
        tax: Money,
        total: Money,
    ) -> RentalOrder:
        order = call_with_timeout(
            self._order_repo.get_by_id, draft.order_id, timeout=self._timeout
        )
        if order is None:
            raise EntityNotFoundError(f"Order {draft.order_id} not found")
        order.revise(
            customer=draft.customer,
            invoice_number=invoice_number,
            start_datetime=draft.start_date,
            end_datetime=draft.end_date,
            items=items,
            subtotal=subtotal,
            tax_amount=tax,
            total_amount=total,
            security_deposit=draft.security_deposit,
        )
        call_with_timeout(self._order_repo.update, order, timeout=self._timeout)
        return order

    @staticmethod
    def _validate(draft: OrderDraft) -> int:
        """Return the rental days, or raise ValidationError."""
        if draft.customer is None or not draft.customer.id:
            raise ValidationError("Please select a customer")
        if not draft.end_date:
            raise ValidationError("Please select an end date")
        if not draft.items:
            raise ValidationError("Please add at least one item")
        if draft.order_id is not None and not draft.invoice_number.strip():
            raise ValidationError("Please enter an invoice number")
        if any(not item.photo_url for item in draft.items):
            raise ValidationError(
                "Please check all items have valid photo, quantity, and price"
            )
        days = financials.rental_days(draft.start_date, draft.end_date)
        if days == 0:
            raise ValidationError("Please check the rental start and end dates")
        return days
