"""Shared utilities for time arithmetic."""

from .clock import days_since, ensure_utc, hours_since, utc_now

__all__ = [
    "days_since",
    "ensure_utc",
    "hours_since",
    "utc_now",
]
