"""Unit tests for the RentalOrder aggregate and its return rules."""

from datetime import date, datetime

import pytest

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.customer import CustomerRef
from rentals.domain.model.line_item import LineItem, ReturnStatus
from rentals.domain.model.order import OrderStatus, RentalOrder
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.model.value_objects import Money, Quantity

END = datetime(2026, 10, 19, 10, 0)
ON_TIME = datetime(2026, 10, 19, 9, 0)
LATE = datetime(2026, 10, 21, 12, 0)


def _item(item_id, qty=2, price="100") -> LineItem:
    return LineItem(
        id=item_id,
        photo_url=f"photos/{item_id}.jpg",
        product_name=f"Product {item_id}",
        quantity=Quantity(qty),
        price_per_day=Money.of(price),
        days=2,
    )


def _order(*items, status=OrderStatus.ACTIVE) -> RentalOrder:
    return RentalOrder(
        id="order-1",
        customer=CustomerRef("cust-1"),
        invoice_number="RNT-20261017-0001",
        start_datetime="2026-10-17T10:00:00",
        end_datetime=END.isoformat(),
        items=list(items) or [_item("a")],
        status=status,
        subtotal=Money.of("200"),
        total_amount=Money.of("200"),
    )


def _returned(item_id, at=ON_TIME, qty=None):
    return ReturnTransition(item_id, ReturnStatus.RETURNED, returned_at=at, quantity=qty)


# ── Creation ─────────────────────────────────────────────────────────────────


class TestCreate:

    def _create(self, start, today=date(2026, 10, 17)):
        return RentalOrder.create(
            customer=CustomerRef("cust-1"),
            invoice_number="INV-1",
            start_datetime=start,
            end_datetime="2026-10-25T10:00:00",
            items=[_item(None)],
            subtotal=Money.of("200"),
            tax_amount=Money.zero(),
            total_amount=Money.of("200"),
            today=today,
        )

    def test_starting_today_is_active(self):
        order = self._create("2026-10-17T08:00:00")
        assert order.status == OrderStatus.ACTIVE
        assert order.id is None  # assigned by repository

    def test_future_start_is_scheduled(self):
        assert self._create("2026-10-20T08:00:00").status == OrderStatus.SCHEDULED

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            RentalOrder.create(
                CustomerRef("c"), "INV", "2026-10-17", "2026-10-18", [],
                Money.zero(), Money.zero(), Money.zero(),
            )

    def test_bad_start_rejected(self):
        with pytest.raises(ValidationError, match="Invalid start date"):
            self._create("tomorrow")


# ── Applying returns ─────────────────────────────────────────────────────────


class TestApplyReturns:

    def test_full_return_completes_order(self):
        order = _order(_item("a"), _item("b"))
        order.apply_return_transitions([_returned("a"), _returned("b")], "staff-1")
        assert order.status == OrderStatus.COMPLETED
        assert order.get_item("a").returned_quantity == 2
        assert order.get_item("a").late_return is False

    def test_return_after_end_is_flagged_late(self):
        order = _order(_item("a"))
        order.apply_return_transitions([_returned("a", at=LATE)], "staff-1")
        item = order.get_item("a")
        assert item.late_return is True
        assert item.actual_return_date == LATE

    def test_some_returned_is_partially_returned(self):
        order = _order(_item("a"), _item("b"))
        order.apply_return_transitions([_returned("a")], "staff-1")
        assert order.status == OrderStatus.PARTIALLY_RETURNED

    def test_returned_and_missing_completes_with_issues(self):
        order = _order(_item("a"), _item("b"))
        order.apply_return_transitions(
            [_returned("a"), ReturnTransition("b", ReturnStatus.MISSING, note="lost")],
            "staff-1",
        )
        assert order.status == OrderStatus.COMPLETED_WITH_ISSUES
        assert order.get_item("b").missing_note == "lost"

    def test_reversal_reopens_order(self):
        order = _order(_item("a"))
        order.apply_return_transitions([_returned("a")], "staff-1")
        order.apply_return_transitions(
            [ReturnTransition("a", ReturnStatus.NOT_YET_RETURNED)], "staff-1"
        )
        assert order.status == OrderStatus.ACTIVE
        assert order.get_item("a").is_pending

    def test_partial_then_remainder(self):
        order = _order(_item("a", qty=5))
        order.apply_return_transitions([_returned("a", qty=3)], "staff-1")
        assert order.get_item("a").pending_quantity == 2
        order.apply_return_transitions(
            [ReturnTransition("a", ReturnStatus.MISSING, quantity=2, note="Items not returned")],
            "staff-1",
        )
        item = order.get_item("a")
        assert item.is_missing
        assert item.returned_quantity == 3
        assert order.status == OrderStatus.COMPLETED_WITH_ISSUES

    def test_over_return_rejects_whole_batch(self):
        order = _order(_item("a", qty=2), _item("b", qty=2))
        with pytest.raises(ValidationError, match="only 2 pending"):
            order.apply_return_transitions(
                [_returned("a"), _returned("b", qty=3)], "staff-1"
            )
        assert order.get_item("a").is_pending
        assert order.audit_log == []

    def test_unknown_item_rejected(self):
        order = _order(_item("a"))
        with pytest.raises(ValidationError, match="not found"):
            order.apply_return_transitions([_returned("zzz")], "staff-1")

    def test_scheduled_order_rejected_before_start_day(self):
        order = _order(_item("a"), status=OrderStatus.SCHEDULED)
        with pytest.raises(ValidationError, match="scheduled"):
            order.apply_return_transitions(
                [_returned("a")], "staff-1", now=datetime(2026, 10, 16, 9, 0)
            )
        assert order.status == OrderStatus.SCHEDULED
        assert order.audit_log == []

    def test_scheduled_order_started_by_first_return(self):
        order = _order(_item("a"), _item("b"), status=OrderStatus.SCHEDULED)
        order.apply_return_transitions([_returned("a")], "staff-1", now=LATE)
        assert order.status == OrderStatus.PARTIALLY_RETURNED
        started = order.audit_log[0]
        assert started.action == "rental_started"
        assert (started.previous_status, started.new_status) == ("scheduled", "active")

    def test_failed_batch_does_not_start_scheduled_order(self):
        order = _order(_item("a"), status=OrderStatus.SCHEDULED)
        with pytest.raises(ValidationError):
            order.apply_return_transitions([_returned("zzz")], "staff-1", now=LATE)
        assert order.status == OrderStatus.SCHEDULED

    def test_cancelled_order_rejected(self):
        order = _order(_item("a"), status=OrderStatus.CANCELLED)
        with pytest.raises(ValidationError, match="cancelled"):
            order.apply_return_transitions([_returned("a")], "staff-1", now=LATE)

    def test_repeated_missing_is_noop(self):
        order = _order(_item("a"))
        missing = ReturnTransition("a", ReturnStatus.MISSING, note="lost")
        order.apply_return_transitions([missing], "staff-1")
        order.apply_return_transitions([missing], "staff-1")
        assert [e.action for e in order.audit_log] == ["item_missing"]

    def test_audit_trail_records_transitions(self):
        order = _order(_item("a"))
        order.apply_return_transitions([_returned("a")], "staff-1")
        entry = order.audit_log[0]
        assert entry.action == "item_returned"
        assert entry.user_id == "staff-1"
        assert entry.item_id == "a"
        assert entry.previous_status == "not_yet_returned"
        assert entry.new_status == "returned"


# ── Late fee ─────────────────────────────────────────────────────────────────


class TestLateFee:

    def test_late_fee_added_to_total(self):
        order = _order(_item("a"))
        order.apply_return_transitions([_returned("a")], "staff-1", late_fee=Money.of("150"))
        assert order.late_fee == Money.of("150")
        assert order.total_amount == Money.of("350")
        assert order.audit_log[-1].action == "late_fee_updated"

    def test_replacing_late_fee_adjusts_total(self):
        order = _order(_item("a"))
        order.set_late_fee(Money.of("150"), "staff-1")
        order.set_late_fee(Money.of("100"), "staff-1")
        assert order.total_amount == Money.of("300")

    def test_none_leaves_fee_untouched(self):
        order = _order(_item("a"))
        order.set_late_fee(Money.of("150"), "staff-1")
        order.apply_return_transitions([_returned("a")], "staff-1", late_fee=None)
        assert order.late_fee == Money.of("150")

    def test_revise_keeps_late_fee_in_total(self):
        order = _order(_item("a"))
        order.set_late_fee(Money.of("50"), "staff-1")
        order.revise(
            customer=order.customer,
            invoice_number=order.invoice_number,
            start_datetime=order.start_datetime,
            end_datetime=order.end_datetime,
            items=order.items,
            subtotal=Money.of("300"),
            tax_amount=Money.zero(),
            total_amount=Money.of("300"),
            security_deposit=None,
        )
        assert order.total_amount == Money.of("350")


# ── Lateness ─────────────────────────────────────────────────────────────────


class TestLateness:

    def test_active_order_past_end_is_late(self):
        order = _order(_item("a"))
        assert order.is_late(LATE)
        assert order.days_overdue(LATE) == 2

    def test_before_end_is_not_late(self):
        order = _order(_item("a"))
        assert not order.is_late(ON_TIME)
        assert order.days_overdue(ON_TIME) == 0

    def test_completed_order_is_never_late(self):
        order = _order(_item("a"), status=OrderStatus.COMPLETED)
        assert not order.is_late(LATE)

    def test_damage_total(self):
        a, b = _item("a"), _item("b")
        a.damage_cost = Money.of("75")
        b.damage_cost = Money.of("25")
        assert _order(a, b).damage_total == Money.of("100")


# ── Status changes ───────────────────────────────────────────────────────────


class TestStatusChanges:

    def test_start_rental(self):
        order = _order(_item("a"), status=OrderStatus.SCHEDULED)
        order.start_rental("staff-1", now=datetime(2026, 10, 16, 9, 30))
        assert order.status == OrderStatus.ACTIVE
        assert order.start_datetime == "2026-10-16T09:30:00"
        assert order.audit_log[-1].action == "rental_started"

    def test_only_scheduled_orders_start(self):
        order = _order(_item("a"))
        with pytest.raises(ValidationError, match="Only scheduled orders"):
            order.start_rental("staff-1")

    def test_change_status_records_transition(self):
        order = _order(_item("a"))
        order.change_status(OrderStatus.FLAGGED, "staff-1", now=LATE)
        entry = order.audit_log[-1]
        assert order.status == OrderStatus.FLAGGED
        assert entry.action == "status_changed"
        assert (entry.previous_status, entry.new_status) == ("active", "flagged")

    def test_change_status_with_late_fee_adjusts_total(self):
        order = _order(_item("a"))
        order.set_late_fee(Money.of("50"), "staff-1")
        order.change_status(OrderStatus.PENDING_RETURN, "staff-1", late_fee=Money.of("80"))
        assert order.late_fee == Money.of("80")
        assert order.total_amount == Money.of("280")

    def test_same_status_only_updates_fee(self):
        order = _order(_item("a"))
        order.change_status(OrderStatus.ACTIVE, "staff-1", late_fee=Money.of("20"))
        assert [e.action for e in order.audit_log] == ["late_fee_updated"]

    def test_cancelled_is_final(self):
        order = _order(_item("a"))
        order.change_status(OrderStatus.CANCELLED, "staff-1")
        with pytest.raises(ValidationError, match="cancelled"):
            order.change_status(OrderStatus.ACTIVE, "staff-1")
        assert not order.is_late(LATE)
