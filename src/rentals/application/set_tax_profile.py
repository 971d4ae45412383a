"""Application service: Set Tax Profile use case."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.tax_profile import TaxProfile, UserRole
from rentals.domain.repository.profile_repository import ProfileRepository


class SetTaxProfileHandler:

    def __init__(self, profile_repo: ProfileRepository) -> None:
        self._profile_repo = profile_repo

    def handle(
        self,
        user_id: str,
        role: str,
        tax_enabled: bool | None = None,
        tax_rate: str | None = None,
        tax_inclusive: bool = False,
        tax_registration_id: str | None = None,
    ) -> TaxProfile:
        """Create or replace the tax settings of *user_id*."""
        if not user_id or not user_id.strip():
            raise ValidationError("User id is required")
        try:
            user_role = UserRole(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role!r}")

        rate = None
        if tax_rate is not None:
            try:
                rate = Decimal(tax_rate)
            except InvalidOperation:
                raise ValidationError(f"Invalid tax rate: {tax_rate!r}")
            if rate < 0 or rate > 100:
                raise ValidationError("Tax rate must be between 0 and 100")

        profile = TaxProfile(
            user_id=user_id.strip(),
            role=user_role,
            tax_enabled=tax_enabled,
            tax_rate=rate,
            tax_inclusive=tax_inclusive,
            tax_registration_id=tax_registration_id or None,
        )
        self._profile_repo.save(profile)
        return profile
