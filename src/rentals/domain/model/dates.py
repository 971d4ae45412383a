"""Timestamp parsing shared by the order aggregate and the financials.

Orders store their range as ISO-8601 strings.  Everything is compared as
naive local time; aware values are converted first.
"""

from __future__ import annotations

from datetime import date, datetime


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 date or date-time, or return None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def day_of(value: str | None) -> date | None:
    parsed = parse_timestamp(value)
    return parsed.date() if parsed is not None else None
