"""Abstract repository for user tax profiles."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rentals.domain.model.tax_profile import TaxProfile, UserRole


class ProfileRepository(ABC):

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> TaxProfile | None:
        """Return the profile of a user, or None."""

    @abstractmethod
    def get_by_role(self, role: UserRole) -> TaxProfile | None:
        """Return the first profile holding *role*, or None."""

    @abstractmethod
    def save(self, profile: TaxProfile) -> None:
        """Persist a new or updated profile."""
