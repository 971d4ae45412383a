"""Domain service: rental-day counts and order financials.

Pure functions over line items and tax profiles.  Nothing here performs
I/O or keeps state, so callers recompute on demand whenever an input
changes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from rentals.domain.model.dates import day_of
from rentals.domain.model.line_item import LineItem
from rentals.domain.model.tax_profile import TaxProfile
from rentals.domain.model.value_objects import Money

DEFAULT_TAX_RATE = Decimal("5.0")


def rental_days(start: str, end: str) -> int:
    """Billable days between two ISO timestamps.

    Both ends are truncated to midnight.  Same-day and next-day rentals
    bill as one day; Day 8 to Day 10 bills two.  Returns 0 when either
    value cannot be parsed, which callers treat as an invalid order.
    """
    start_day = day_of(start)
    end_day = day_of(end)
    if start_day is None or end_day is None:
        return 0
    difference = (end_day - start_day).days
    return 1 if difference < 1 else difference


def subtotal(items: Iterable[LineItem]) -> Money:
    result = Money.zero()
    for item in items:
        result = result + item.line_total
    return result


def is_tax_enabled(profile: TaxProfile | None) -> bool:
    """Explicit flag wins; older profiles infer it from rate or registration id."""
    if profile is None:
        return False
    if profile.tax_enabled is not None:
        return profile.tax_enabled
    has_rate = profile.tax_rate is not None and profile.tax_rate > 0
    has_registration = bool(profile.tax_registration_id)
    return has_rate or has_registration


def tax_amount(
    amount: Money,
    profile: TaxProfile | None,
    default_rate: Decimal = DEFAULT_TAX_RATE,
) -> Money:
    """Tax contained in (inclusive) or added to (exclusive) *amount*."""
    if not is_tax_enabled(profile):
        return Money.zero()
    percent = profile.tax_rate if profile.tax_rate is not None else default_rate
    rate = percent / Decimal(100)
    if profile.tax_inclusive:
        # Multiply before dividing: 1050 @ 5% extracts exactly 50.00.
        return Money(amount.amount * rate / (1 + rate)).scaled(Decimal(1))
    return amount.scaled(rate)


def grand_total(
    amount: Money,
    profile: TaxProfile | None,
    default_rate: Decimal = DEFAULT_TAX_RATE,
) -> Money:
    if not is_tax_enabled(profile) or profile.tax_inclusive:
        return amount
    return amount + tax_amount(amount, profile, default_rate)
