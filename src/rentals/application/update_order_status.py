"""Application service: Update Order Status use case.

Lets the operator set any status by hand, optionally replacing the late
fee in the same step.  The total moves with the fee: the old fee comes
off and the new one goes on.
"""

from __future__ import annotations

import logging
from datetime import datetime

from rentals.application.bounded_call import call_with_timeout
from rentals.application.dto import OrderDTO
from rentals.application.show_order import to_order_dto
from rentals.domain.exceptions import EntityNotFoundError, ValidationError
from rentals.domain.model.order import OrderStatus
from rentals.domain.model.value_objects import Money
from rentals.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class UpdateOrderStatusHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(
        self,
        order_id: str,
        status: str,
        user_id: str,
        late_fee: Money | None = None,
        now: datetime | None = None,
    ) -> OrderDTO:
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown order status: {status!r}") from None

        now = now or datetime.now()
        order = call_with_timeout(self._order_repo.get_by_id, order_id, timeout=self._timeout)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")

        previous = order.status
        order.change_status(new_status, user_id, late_fee, now)
        call_with_timeout(self._order_repo.update, order, timeout=self._timeout)
        logger.info(
            "Order %s status %s -> %s by %s",
            order_id, previous.value, new_status.value, user_id,
        )
        return to_order_dto(order, now)
