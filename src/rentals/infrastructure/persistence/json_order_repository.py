"""JSON-file-backed implementation of OrderRepository.

Stands in for the hosted database: ids are generated here, items are
replaced wholesale on update, and a batch of return transitions is
applied to the aggregate and written back in one go.
"""

from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.model.customer import CustomerRef
from rentals.domain.model.line_item import LineItem, ReturnStatus
from rentals.domain.model.order import OrderStatus, RentalOrder, ReturnAuditEntry
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.model.value_objects import Money, Quantity
from rentals.domain.repository.order_repository import OrderRepository


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> RentalOrder | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["id"] == order_id:
                    return self._to_domain(raw)
        return None

    def create(self, order: RentalOrder) -> str:
        with self._lock:
            orders = self._load_raw()
            order.id = uuid.uuid4().hex
            self._assign_item_ids(order)
            orders.append(self._to_raw(order))
            self._persist_raw(orders)
        return order.id

    def update(self, order: RentalOrder) -> None:
        with self._lock:
            orders = self._load_raw()
            index = self._index_of(orders, order.id)
            self._assign_item_ids(order)
            orders[index] = self._to_raw(order)
            self._persist_raw(orders)

    def apply_return_transitions(
        self,
        order_id: str,
        transitions: list[ReturnTransition],
        user_id: str,
        late_fee: Money | None,
        now: datetime | None = None,
    ) -> None:
        with self._lock:
            orders = self._load_raw()
            index = self._index_of(orders, order_id)
            order = self._to_domain(orders[index])
            order.apply_return_transitions(transitions, user_id, late_fee, now)
            orders[index] = self._to_raw(order)
            self._persist_raw(orders)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: RentalOrder) -> dict:
        return {
            "id": order.id,
            "customer": {
                "id": order.customer.id,
                "name": order.customer.name,
                "phone": order.customer.phone,
            },
            "invoice_number": order.invoice_number,
            "start_datetime": order.start_datetime,
            "end_datetime": order.end_datetime,
            "status": order.status.value,
            "subtotal": str(order.subtotal.amount),
            "tax_amount": str(order.tax_amount.amount),
            "total_amount": str(order.total_amount.amount),
            "security_deposit": _amount_or_none(order.security_deposit),
            "late_fee": str(order.late_fee.amount),
            "staff_id": order.staff_id,
            "created_at": order.created_at.isoformat(),
            "items": [
                {
                    "id": item.id,
                    "photo_url": item.photo_url,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "price_per_day": str(item.price_per_day.amount),
                    "days": item.days,
                    "line_total": str(item.billed_total.amount),
                    "return_status": item.return_status.value,
                    "actual_return_date": _iso_or_none(item.actual_return_date),
                    "late_return": item.late_return,
                    "returned_quantity": item.returned_quantity,
                    "damage_cost": _amount_or_none(item.damage_cost),
                    "damage_description": item.damage_description,
                    "missing_note": item.missing_note,
                }
                for item in order.items
            ],
            "audit_log": [
                {
                    "action": entry.action,
                    "user_id": entry.user_id,
                    "created_at": entry.created_at.isoformat(),
                    "item_id": entry.item_id,
                    "previous_status": entry.previous_status,
                    "new_status": entry.new_status,
                    "notes": entry.notes,
                }
                for entry in order.audit_log
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> RentalOrder:
        items = [
            LineItem(
                id=i["id"],
                photo_url=i["photo_url"],
                product_name=i.get("product_name"),
                quantity=Quantity(i["quantity"]),
                price_per_day=Money(Decimal(i["price_per_day"])),
                days=i.get("days", 1),
                return_status=ReturnStatus(i.get("return_status", "not_yet_returned")),
                actual_return_date=_datetime_or_none(i.get("actual_return_date")),
                late_return=i.get("late_return"),
                returned_quantity=i.get("returned_quantity"),
                damage_cost=_money_or_none(i.get("damage_cost")),
                damage_description=i.get("damage_description"),
                missing_note=i.get("missing_note"),
            )
            for i in raw["items"]
        ]
        customer = raw["customer"]
        return RentalOrder(
            id=raw["id"],
            customer=CustomerRef(customer["id"], customer.get("name"), customer.get("phone")),
            invoice_number=raw["invoice_number"],
            start_datetime=raw["start_datetime"],
            end_datetime=raw["end_datetime"],
            items=items,
            status=OrderStatus(raw["status"]),
            subtotal=Money(Decimal(raw["subtotal"])),
            tax_amount=Money(Decimal(raw["tax_amount"])),
            total_amount=Money(Decimal(raw["total_amount"])),
            security_deposit=_money_or_none(raw.get("security_deposit")),
            late_fee=Money(Decimal(raw.get("late_fee", "0"))),
            staff_id=raw.get("staff_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            audit_log=[
                ReturnAuditEntry(
                    action=e["action"],
                    user_id=e["user_id"],
                    created_at=datetime.fromisoformat(e["created_at"]),
                    item_id=e.get("item_id"),
                    previous_status=e.get("previous_status"),
                    new_status=e.get("new_status"),
                    notes=e.get("notes"),
                )
                for e in raw.get("audit_log", [])
            ],
        )

    # --- File helpers ---------------------------------------------------------

    @staticmethod
    def _assign_item_ids(order: RentalOrder) -> None:
        for item in order.items:
            if not item.id:
                item.id = uuid.uuid4().hex

    @staticmethod
    def _index_of(orders: list[dict], order_id: str | None) -> int:
        for i, raw in enumerate(orders):
            if raw["id"] == order_id:
                return i
        raise EntityNotFoundError(f"Order {order_id} not found")

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(orders, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


def _amount_or_none(money: Money | None) -> str | None:
    return str(money.amount) if money is not None else None


def _money_or_none(value: str | None) -> Money | None:
    return Money(Decimal(value)) if value is not None else None


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _datetime_or_none(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
