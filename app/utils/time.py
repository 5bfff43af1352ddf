"""Utility functions for time handling.

All timestamps should be UTC and timezone-aware. Persist UTC timestamps as
ISO-8601 strings with timezone offsets (e.g., "+00:00") via iso_now().
Sensor readings carry epoch milliseconds, the unit the microcontroller sends.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from app.constants import DISPLAY_TIMEZONE

Clock = Callable[[], float]


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def epoch_ms(now: float | None = None) -> int:
    """Return epoch milliseconds for *now* (seconds) or the wall clock."""
    return int((time.time() if now is None else now) * 1000)


def from_epoch(seconds: float) -> datetime:
    """Convert epoch seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def iso_from_epoch(seconds: float) -> str:
    return from_epoch(seconds).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_local(dt: datetime, tz_name: str = DISPLAY_TIMEZONE) -> str:
    """Render *dt* the way the dashboard shows timestamps (id-ID style).

    Example: ``19/10/2026, 14.05.09``.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local = dt.astimezone(ZoneInfo(tz_name))
    return f"{local.day}/{local.month}/{local.year}, {local:%H.%M.%S}"


def format_local_epoch_ms(timestamp_ms: int, tz_name: str = DISPLAY_TIMEZONE) -> str:
    return format_local(from_epoch(timestamp_ms / 1000), tz_name)


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
