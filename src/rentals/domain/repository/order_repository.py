"""Abstract repository for the RentalOrder aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations (JSON, a hosted database
client, in-memory) live elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from rentals.domain.model.order import RentalOrder
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.model.value_objects import Money


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> RentalOrder | None:
        """Return an order with its line items, or None if not found."""

    @abstractmethod
    def create(self, order: RentalOrder) -> str:
        """Persist a new order, assign ids to it and its items, return its id."""

    @abstractmethod
    def update(self, order: RentalOrder) -> None:
        """Persist an edited order, replacing its items wholesale."""

    @abstractmethod
    def apply_return_transitions(
        self,
        order_id: str,
        transitions: list[ReturnTransition],
        user_id: str,
        late_fee: Money | None,
        now: datetime | None = None,
    ) -> None:
        """Apply one batch of return transitions atomically.

        Called twice per return when partial returns leave a missing
        remainder; the second call never carries a late fee.  *now* is
        the operator's clock, used for the audit trail and to start a
        scheduled order whose start day has come.
        """
