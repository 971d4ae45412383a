"""Integration tests for starting scheduled rentals."""

from datetime import datetime
from decimal import Decimal

import pytest

from rentals.application.process_return import ProcessReturnHandler
from rentals.application.start_rental import StartRentalHandler
from rentals.application.submit_order import SubmitOrderHandler
from rentals.domain.exceptions import EntityNotFoundError, ValidationError
from rentals.domain.model.draft import OrderDraft
from rentals.domain.model.line_item import LineItem
from rentals.domain.model.order import OrderStatus
from rentals.domain.model.tax_profile import TaxProfile, UserRole
from rentals.domain.model.value_objects import Money, Quantity
from rentals.domain.service.return_planner import ReturnRequest
from rentals.domain.service.tax_profile_resolver import TaxProfileResolver
from tests.fakes import FakeOrderRepository, FakeProfileRepository

BOOKED = datetime(2026, 10, 17, 9, 0)


def _setup():
    """Book a chair on the 17th for a rental starting on the 18th."""
    order_repo = FakeOrderRepository()
    resolver = TaxProfileResolver(
        FakeProfileRepository([TaxProfile("owner", UserRole.SUPER_ADMIN, tax_enabled=False)])
    )
    draft = OrderDraft(clock=lambda: BOOKED)
    draft.set_customer("cust-1", "Asha", "9800000000")
    draft.set_start_date("2026-10-18T10:00:00")
    draft.set_end_date("2026-10-19T10:00:00")
    draft.add_item(LineItem("chair.jpg", Quantity(4), Money.of("100"), product_name="Chair"))
    dto = SubmitOrderHandler(order_repo, resolver, clock=lambda: BOOKED).handle(draft, "owner")
    return order_repo, dto.id, dto.items[0].id


class TestStartRental:

    def test_booked_ahead_is_scheduled(self):
        order_repo, oid, _ = _setup()
        assert order_repo.get_by_id(oid).status == OrderStatus.SCHEDULED

    def test_start_makes_order_active(self):
        order_repo, oid, _ = _setup()

        dto = StartRentalHandler(order_repo).handle(oid, "staff-1", datetime(2026, 10, 18, 8, 0))

        assert dto.status == "active"
        order = order_repo.get_by_id(oid)
        assert order.status == OrderStatus.ACTIVE
        assert order.start_datetime == "2026-10-18T08:00:00"

    def test_active_order_cannot_start_again(self):
        order_repo, oid, _ = _setup()
        handler = StartRentalHandler(order_repo)
        handler.handle(oid, "staff-1", datetime(2026, 10, 18, 8, 0))

        with pytest.raises(ValidationError, match="Only scheduled orders"):
            handler.handle(oid, "staff-1")

    def test_unknown_order(self):
        order_repo, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            StartRentalHandler(order_repo).handle("order-404", "staff-1")


# ── Returns on scheduled orders ──────────────────────────────────────────────


class TestReturnWithoutExplicitStart:

    def test_partial_return_after_start_day(self):
        order_repo, oid, chair = _setup()

        outcome = ProcessReturnHandler(order_repo).handle(
            oid,
            ReturnRequest(selected={chair}, partial={chair: 3}, late_fee=Money.of("50")),
            "staff-1",
            datetime(2026, 10, 20, 12, 0),
        )

        assert outcome.applied == 1
        assert outcome.missing_applied == 1
        order = order_repo.get_by_id(oid)
        assert order.status == OrderStatus.COMPLETED_WITH_ISSUES
        assert order.late_fee == Money.of("50")
        assert order.get_item(chair).late_return
