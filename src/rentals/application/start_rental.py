"""Application service: Start Rental use case.

Marks a scheduled order as handed over.  Returns also start a scheduled
order on their own once its start day has come, so this is only needed
when the customer collects early or the operator wants the order active
before anything comes back.
"""

from __future__ import annotations

import logging
from datetime import datetime

from rentals.application.bounded_call import call_with_timeout
from rentals.application.dto import OrderDTO
from rentals.application.show_order import to_order_dto
from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class StartRentalHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(self, order_id: str, user_id: str, now: datetime | None = None) -> OrderDTO:
        now = now or datetime.now()
        order = call_with_timeout(self._order_repo.get_by_id, order_id, timeout=self._timeout)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")

        order.start_rental(user_id, now)
        call_with_timeout(self._order_repo.update, order, timeout=self._timeout)
        logger.info("Order %s started by %s", order_id, user_id)
        return to_order_dto(order, now)
