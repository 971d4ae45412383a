"""Application service: Load Order For Edit use case.

The draft hands out a token before the fetch starts.  If another load
begins while this fetch is in flight, this result is stale by the time
it arrives and the draft drops it.
"""

from __future__ import annotations

from rentals.application.bounded_call import call_with_timeout
from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.model.draft import OrderDraft
from rentals.domain.repository.order_repository import OrderRepository


class LoadOrderForEditHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(self, draft: OrderDraft, order_id: str) -> bool:
        """Fetch *order_id* into *draft*.  False when the result was stale."""
        token = draft.begin_load(order_id)
        order = call_with_timeout(self._order_repo.get_by_id, order_id, timeout=self._timeout)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return draft.load_order(order, token)
