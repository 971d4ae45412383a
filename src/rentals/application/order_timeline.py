"""Application service: Order Timeline use case (query).

The history of an order: its creation first, then every audit entry in
the order it was recorded.
"""

from __future__ import annotations

from rentals.application.bounded_call import call_with_timeout
from rentals.application.dto import TimelineEntryDTO
from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.repository.order_repository import OrderRepository


class OrderTimelineHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(self, order_id: str) -> list[TimelineEntryDTO]:
        order = call_with_timeout(self._order_repo.get_by_id, order_id, timeout=self._timeout)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")

        timeline = [
            TimelineEntryDTO(
                action="order_created",
                user_id=order.staff_id,
                created_at=order.created_at.isoformat(timespec="seconds"),
            )
        ]
        timeline.extend(
            TimelineEntryDTO(
                action=entry.action,
                user_id=entry.user_id,
                created_at=entry.created_at.isoformat(timespec="seconds"),
                item_id=entry.item_id,
                previous_status=entry.previous_status,
                new_status=entry.new_status,
                notes=entry.notes,
            )
            for entry in order.audit_log
        )
        return timeline
