"""TaxProfile — a user's billing configuration.

Profiles belong to users, not orders.  The reconciliation functions in
``rentals.domain.service.financials`` consume them read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class UserRole(Enum):
    SUPER_ADMIN = "super_admin"
    BRANCH_ADMIN = "branch_admin"
    STAFF = "staff"

    @property
    def is_delegated(self) -> bool:
        """Branch admins and staff bill under the owner's tax settings."""
        return self is not UserRole.SUPER_ADMIN


@dataclass(frozen=True)
class TaxProfile:
    """Tax settings of one user.

    ``tax_enabled`` is None for profiles created before the explicit flag
    existed; see ``financials.is_tax_enabled`` for how that is inferred.
    """

    user_id: str
    role: UserRole = UserRole.SUPER_ADMIN
    tax_enabled: bool | None = None
    tax_rate: Decimal | None = None
    tax_inclusive: bool = False
    tax_registration_id: str | None = None
