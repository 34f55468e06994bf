"""
Domain time utilities (pure).

Centralized timestamp helpers shared by lots, transactions and report queries.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforce that a timestamp is UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a query bound to UTC; naive datetimes are taken to be UTC already."""

    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
