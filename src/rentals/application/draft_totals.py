"""Application service: Draft Totals (query).

Recomputes the live figures for a draft on demand.  The tax profile may
still be resolving; in that case the loading values are returned and
the caller asks again once ``PendingProfile.done`` turns True.
"""

from __future__ import annotations

from decimal import Decimal

from rentals.application.dto import DraftTotalsDTO
from rentals.domain.model.draft import OrderDraft
from rentals.domain.model.value_objects import Money
from rentals.domain.service import financials
from rentals.domain.service.tax_profile_resolver import PendingProfile


class DraftTotalsHandler:

    def __init__(self, default_tax_rate: Decimal = financials.DEFAULT_TAX_RATE) -> None:
        self._default_tax_rate = default_tax_rate

    def handle(self, draft: OrderDraft, billing: PendingProfile) -> DraftTotalsDTO:
        days = financials.rental_days(draft.start_date, draft.end_date)
        subtotal = financials.subtotal(draft.items)

        if not billing.done:
            return DraftTotalsDTO(
                days=days,
                subtotal=str(subtotal),
                tax_amount=str(Money.zero()),
                grand_total=str(subtotal),
                pending=True,
            )

        profile = billing.profile()
        return DraftTotalsDTO(
            days=days,
            subtotal=str(subtotal),
            tax_amount=str(financials.tax_amount(subtotal, profile, self._default_tax_rate)),
            grand_total=str(financials.grand_total(subtotal, profile, self._default_tax_rate)),
        )
