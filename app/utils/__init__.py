"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_utc,
    minutes_since_midnight,
    now_utc,
    parse_clock_time,
    parse_timezone,
    resolve_timezone,
    to_epoch_seconds,
)

__all__ = [
    "ensure_utc",
    "minutes_since_midnight",
    "now_utc",
    "parse_clock_time",
    "parse_timezone",
    "resolve_timezone",
    "to_epoch_seconds",
]
