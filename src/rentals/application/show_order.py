"""Application service: Show Order use case (query)."""

from __future__ import annotations

from datetime import datetime

from rentals.application.dto import OrderDTO, OrderLineItemDTO
from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.model.order import RentalOrder
from rentals.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str, now: datetime | None = None) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return to_order_dto(order, now)


def to_order_dto(order: RentalOrder, now: datetime | None = None) -> OrderDTO:
    now = now or datetime.now()
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        invoice_number=order.invoice_number,
        customer_id=order.customer.id,
        customer_name=order.customer.name,
        status=order.status.value,
        start_datetime=order.start_datetime,
        end_datetime=order.end_datetime,
        items=[
            OrderLineItemDTO(
                id=item.id,
                product_name=item.display_name,
                quantity=item.quantity.value,
                price_per_day=str(item.price_per_day),
                days=item.days,
                line_total=str(item.billed_total),
                return_status=item.return_status.value,
                returned_quantity=item.already_returned_quantity,
                pending_quantity=item.pending_quantity,
                damage_cost=str(item.damage_cost) if item.damage_cost else None,
                missing_note=item.missing_note,
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        tax_amount=str(order.tax_amount),
        total_amount=str(order.total_amount),
        late_fee=str(order.late_fee),
        damage_total=str(order.damage_total),
        security_deposit=str(order.security_deposit) if order.security_deposit else None,
        is_late=order.is_late(now),
        days_overdue=order.days_overdue(now),
    )
