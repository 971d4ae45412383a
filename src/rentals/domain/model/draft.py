"""OrderDraft aggregate — the mutable working set while an order is authored.

A draft is owned by exactly one caller (a CLI invocation, a screen, a
request handler) and passed around explicitly.  Every operation is a
local, synchronous state change; persistence happens elsewhere.

Two guards keep billable items from being duplicated:

- items are deduplicated by ``LineItem.identity_key`` on add and on load
- loads are tagged with a generation token; a load whose token is no
  longer current (a newer load was started) is dropped, and a re-entrant
  load of the order currently being loaded is ignored
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from rentals.domain.model.customer import CustomerRef
from rentals.domain.model.line_item import LineItem
from rentals.domain.model.order import RentalOrder
from rentals.domain.model.value_objects import Money

logger = logging.getLogger(__name__)


class OrderDraft:

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._generation = 0
        self._locked = False
        self._last_loaded_order_id: str | None = None
        self._reset()

    # --- State ----------------------------------------------------------------

    @property
    def customer(self) -> CustomerRef | None:
        return self._customer

    @property
    def start_date(self) -> str:
        return self._start_date

    @property
    def end_date(self) -> str:
        return self._end_date

    @property
    def invoice_number(self) -> str:
        return self._invoice_number

    @property
    def items(self) -> list[LineItem]:
        """Newest first.  A copy; mutate through the draft's methods."""
        return list(self._items)

    @property
    def security_deposit(self) -> Money | None:
        return self._security_deposit

    @property
    def order_id(self) -> str | None:
        """Id of the order being edited, None for a new order."""
        return self._order_id

    @property
    def is_locked(self) -> bool:
        return self._locked

    # --- Field setters --------------------------------------------------------

    def set_customer(
        self, customer_id: str, name: str | None = None, phone: str | None = None
    ) -> None:
        self._customer = CustomerRef(id=customer_id, name=name, phone=phone)

    def set_start_date(self, iso: str) -> None:
        self._start_date = iso

    def set_end_date(self, iso: str) -> None:
        self._end_date = iso

    def set_invoice_number(self, number: str) -> None:
        self._invoice_number = number

    def set_security_deposit(self, amount: Money | None) -> None:
        self._security_deposit = amount

    # --- Items ----------------------------------------------------------------

    def add_item(self, item: LineItem) -> bool:
        """Prepend *item*.  Returns False when rejected (locked or duplicate)."""
        if self._locked:
            logger.warning("add_item rejected: draft is locked")
            return False
        key = item.identity_key
        if any(existing.identity_key == key for existing in self._items):
            logger.debug("add_item rejected: duplicate item %s", key)
            return False
        self._items.insert(0, item)
        return True

    def update_item(self, index: int, item: LineItem) -> None:
        if 0 <= index < len(self._items):
            self._items[index] = item

    def remove_item(self, index: int) -> None:
        if 0 <= index < len(self._items):
            del self._items[index]

    # --- Loading an existing order -------------------------------------------

    def begin_load(self, order_id: str) -> int:
        """Take a token for a load that is about to be fetched.

        Any token handed out earlier becomes stale.
        """
        self._generation += 1
        logger.debug("Load of order %s started with token %s", order_id, self._generation)
        return self._generation

    def load_order(self, order: RentalOrder, token: int | None = None) -> bool:
        """Replace the whole draft with *order*.

        Returns True when the draft was rebuilt from *order*, False when
        the call was dropped (stale token or re-entrant load).
        """
        if token is None:
            token = self.begin_load(order.id)
        if token != self._generation:
            logger.debug(
                "load_order dropped for order %s: token %s superseded by %s",
                order.id, token, self._generation,
            )
            return False
        if self._locked and self._last_loaded_order_id == order.id:
            logger.warning("load_order dropped: order %s is already loading", order.id)
            return False

        self._locked = True
        self._last_loaded_order_id = order.id
        try:
            self._reset()
            unique: dict[tuple, LineItem] = {}
            for item in order.items:
                key = item.identity_key
                if key in unique:
                    logger.warning("Duplicate item dropped while loading order %s: %s", order.id, key)
                    continue
                unique[key] = replace(item)

            self._order_id = order.id
            self._customer = order.customer
            self._start_date = order.start_datetime
            self._end_date = order.end_datetime
            self._invoice_number = order.invoice_number
            self._items = list(unique.values())
            self._security_deposit = order.security_deposit
            logger.debug("Loaded order %s with %d items", order.id, len(self._items))
        finally:
            self._locked = False
        return True

    def clear(self) -> None:
        """Back to an empty draft, whatever the lock state."""
        self._locked = False
        self._last_loaded_order_id = None
        self._generation += 1
        self._reset()

    # --- Internal helpers -----------------------------------------------------

    def _reset(self) -> None:
        now = self._clock()
        self._order_id: str | None = None
        self._customer: CustomerRef | None = None
        self._start_date = now.isoformat()
        self._end_date = (now + timedelta(days=1)).isoformat()
        self._invoice_number = ""
        self._items: list[LineItem] = []
        self._security_deposit: Money | None = None
