"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from rentals.domain.service.tax_profile_resolver import TaxProfileResolver
from rentals.infrastructure.config import Settings, load_settings
from rentals.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from rentals.infrastructure.persistence.json_profile_repository import (
    JsonProfileRepository,
)


def settings() -> Settings:
    return load_settings()


def order_repository(config: Settings) -> JsonOrderRepository:
    return JsonOrderRepository(config.orders_file)


def profile_repository(config: Settings) -> JsonProfileRepository:
    return JsonProfileRepository(config.profiles_file)


def tax_profile_resolver(config: Settings) -> TaxProfileResolver:
    return TaxProfileResolver(profile_repository(config), timeout=config.call_timeout)
