"""JSON-file-backed implementation of ProfileRepository."""

from __future__ import annotations

import json
import threading
from decimal import Decimal
from pathlib import Path

from rentals.domain.model.tax_profile import TaxProfile, UserRole
from rentals.domain.repository.profile_repository import ProfileRepository


class JsonProfileRepository(ProfileRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- ProfileRepository interface ------------------------------------------

    def get_by_user_id(self, user_id: str) -> TaxProfile | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["user_id"] == user_id:
                    return self._to_domain(raw)
        return None

    def get_by_role(self, role: UserRole) -> TaxProfile | None:
        with self._lock:
            for raw in self._load_raw():
                if raw["role"] == role.value:
                    return self._to_domain(raw)
        return None

    def save(self, profile: TaxProfile) -> None:
        with self._lock:
            profiles = self._load_raw()

            # Upsert: replace if exists, otherwise append
            replaced = False
            for i, raw in enumerate(profiles):
                if raw["user_id"] == profile.user_id:
                    profiles[i] = self._to_raw(profile)
                    replaced = True
                    break
            if not replaced:
                profiles.append(self._to_raw(profile))

            self._persist_raw(profiles)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(profile: TaxProfile) -> dict:
        return {
            "user_id": profile.user_id,
            "role": profile.role.value,
            "tax_enabled": profile.tax_enabled,
            "tax_rate": str(profile.tax_rate) if profile.tax_rate is not None else None,
            "tax_inclusive": profile.tax_inclusive,
            "tax_registration_id": profile.tax_registration_id,
        }

    @staticmethod
    def _to_domain(raw: dict) -> TaxProfile:
        rate = raw.get("tax_rate")
        return TaxProfile(
            user_id=raw["user_id"],
            role=UserRole(raw.get("role", UserRole.STAFF.value)),
            tax_enabled=raw.get("tax_enabled"),
            tax_rate=Decimal(str(rate)) if rate is not None else None,
            tax_inclusive=bool(raw.get("tax_inclusive", False)),
            tax_registration_id=raw.get("tax_registration_id"),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, profiles: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(profiles, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
