"""Tests for the JSON-file repositories."""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from rentals.domain.exceptions import EntityNotFoundError
from rentals.domain.model.customer import CustomerRef
from rentals.domain.model.line_item import LineItem, ReturnStatus
from rentals.domain.model.order import OrderStatus, RentalOrder
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.model.tax_profile import TaxProfile, UserRole
from rentals.domain.model.value_objects import Money, Quantity
from rentals.infrastructure.persistence.json_order_repository import JsonOrderRepository
from rentals.infrastructure.persistence.json_profile_repository import JsonProfileRepository


def _order() -> RentalOrder:
    return RentalOrder(
        id=None,
        customer=CustomerRef("cust-1", "Asha", "9800000000"),
        invoice_number="RNT-20261017-0001",
        start_datetime="2026-10-17T10:00:00",
        end_datetime="2026-10-19T10:00:00",
        items=[
            LineItem("chair.jpg", Quantity(5), Money.of("100"), days=2, product_name="Chair"),
        ],
        subtotal=Money.of("500"),
        tax_amount=Money.of("25"),
        total_amount=Money.of("525"),
        security_deposit=Money.of("1000"),
        staff_id="staff-1",
    )


# ── Orders ───────────────────────────────────────────────────────────────────


class TestJsonOrderRepository:

    def test_create_assigns_ids_and_round_trips(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        oid = repo.create(_order())

        loaded = repo.get_by_id(oid)
        assert loaded.id == oid
        assert loaded.items[0].id
        assert loaded.customer.phone == "9800000000"
        assert loaded.total_amount == Money.of("525")
        assert loaded.security_deposit == Money.of("1000")
        assert loaded.status == OrderStatus.ACTIVE

    def test_persisted_line_total_includes_days(self, tmp_path):
        path = tmp_path / "orders.json"
        JsonOrderRepository(path).create(_order())
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert Decimal(raw[0]["items"][0]["line_total"]) == Decimal("1000")

    def test_missing_order_is_none(self, tmp_path):
        assert JsonOrderRepository(tmp_path / "orders.json").get_by_id("nope") is None

    def test_update_unknown_order(self, tmp_path):
        order = _order()
        order.id = "ghost"
        with pytest.raises(EntityNotFoundError):
            JsonOrderRepository(tmp_path / "orders.json").update(order)

    def test_apply_return_transitions_persists(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        oid = repo.create(_order())
        item_id = repo.get_by_id(oid).items[0].id
        at = datetime(2026, 10, 20, 9, 0)

        repo.apply_return_transitions(
            oid,
            [ReturnTransition(item_id, ReturnStatus.RETURNED, returned_at=at, quantity=3)],
            "staff-1",
            Money.of("50"),
        )

        order = JsonOrderRepository(tmp_path / "orders.json").get_by_id(oid)
        item = order.items[0]
        assert item.returned_quantity == 3
        assert item.actual_return_date == at
        assert item.late_return is True
        assert order.late_fee == Money.of("50")
        assert order.total_amount == Money.of("575")
        assert [e.action for e in order.audit_log] == ["item_returned", "late_fee_updated"]

    def test_apply_to_unknown_order(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        with pytest.raises(EntityNotFoundError):
            repo.apply_return_transitions("ghost", [], "staff-1", None)


# ── Profiles ─────────────────────────────────────────────────────────────────


class TestJsonProfileRepository:

    def test_save_and_lookup(self, tmp_path):
        repo = JsonProfileRepository(tmp_path / "profiles.json")
        owner = TaxProfile("owner", UserRole.SUPER_ADMIN, True, Decimal("18"), True, "GST1")
        repo.save(owner)
        repo.save(TaxProfile("staff-1", UserRole.STAFF))

        assert repo.get_by_user_id("owner") == owner
        assert repo.get_by_role(UserRole.SUPER_ADMIN) == owner
        assert repo.get_by_role(UserRole.BRANCH_ADMIN) is None

    def test_save_upserts(self, tmp_path):
        path = tmp_path / "profiles.json"
        repo = JsonProfileRepository(path)
        repo.save(TaxProfile("owner", tax_rate=Decimal("5")))
        repo.save(TaxProfile("owner", tax_rate=Decimal("12")))

        assert len(json.loads(path.read_text(encoding="utf-8"))) == 1
        assert repo.get_by_user_id("owner").tax_rate == Decimal("12")
