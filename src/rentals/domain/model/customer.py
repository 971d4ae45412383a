"""Customer reference held by drafts and orders."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CustomerRef:
    """Snapshot of the customer at the time the order was authored."""

    id: str
    name: str | None = None
    phone: str | None = None
