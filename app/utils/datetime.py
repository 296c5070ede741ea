"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
_CLOCK_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in UTC.

    Naive values are assumed to already be UTC; this is how SQLite hands back
    ``DateTime(timezone=True)`` columns.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_seconds(value: datetime) -> int:
    """Return the POSIX timestamp of ``value`` truncated to whole seconds."""

    return int(ensure_utc(value).timestamp())


def resolve_timezone(tz_name: str | None, *, default: str = _DEFAULT_TIMEZONE) -> tzinfo:
    """Resolve ``tz_name`` into a ``tzinfo`` instance.

    Accepts IANA names as well as ``UTC+05:30`` style offsets. Unknown values
    resolve to ``default``.
    """

    name = (tz_name or "").strip() or default
    try:
        return parse_timezone(name)
    except ValueError:
        return parse_timezone(default)


def parse_timezone(tz_name: str) -> tzinfo:
    """Parse an IANA name or ``UTC+05:30`` style offset, raising ``ValueError``."""

    name = tz_name.strip()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        pass

    match = _OFFSET_PATTERN.match(name)
    if not match:
        raise ValueError(f"Unknown timezone '{tz_name}'")
    sign = -1 if match.group("sign") == "-" else 1
    hours = int(match.group("hours"))
    minutes = int(match.group("minutes") or 0)
    # tzinfo offsets must lie strictly within one day.
    if hours > 23 or minutes > 59:
        raise ValueError(f"Timezone offset out of range in '{tz_name}'")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_clock_time(value: str) -> time:
    """Parse an ``HH:MM`` string into a :class:`datetime.time`."""

    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    return time(hour=hour, minute=minute)


def minutes_since_midnight(value: datetime | time) -> int:
    return value.hour * 60 + value.minute
