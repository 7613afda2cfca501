"""Date/time helpers.

Always operate on timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return a timezone-aware datetime in UTC."""
    return datetime.now(UTC)


def utc_after(seconds: float) -> datetime:
    """Return the UTC instant ``seconds`` from now."""
    return utcnow() + timedelta(seconds=seconds)
