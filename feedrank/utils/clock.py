"""
Time helpers: UTC-aware "now" and age calculations used by signals and caches.

Every function accepts an optional `now` so callers (and tests) can pin the clock.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def hours_since(dt: datetime, now: Optional[datetime] = None) -> float:
    """Hours elapsed since dt (negative if dt is in the future)."""
    now = ensure_utc(now) if now is not None else utc_now()
    return (now - ensure_utc(dt)).total_seconds() / 3600.0


def days_since(dt: datetime, now: Optional[datetime] = None) -> float:
    """Days elapsed since dt, fractional."""
    return hours_since(dt, now) / 24.0
