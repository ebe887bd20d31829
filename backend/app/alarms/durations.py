"""Duration formatting for alarm records."""
from __future__ import annotations

from datetime import datetime

_SECOND = 1000
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


def format_duration(ms: int) -> str:
    """Compact largest-unit-first form: '2d 3h', '1h 5m', '5m', '42s'."""
    ms = max(0, int(ms))
    days, rest = divmod(ms, _DAY)
    hours, rest = divmod(rest, _HOUR)
    minutes, rest = divmod(rest, _MINUTE)
    seconds = rest // _SECOND

    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m"
    return f"{seconds}s"


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are read as local wall-clock time and made tz-aware."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.astimezone()
    return dt


def duration_ms(start: datetime, end: datetime) -> int:
    return int((ensure_aware(end) - ensure_aware(start)).total_seconds() * 1000)


def elapsed_since(t0: datetime, now: datetime) -> str:
    # Activation timestamps ahead of the local clock clamp to zero
    return format_duration(max(0, duration_ms(t0, now)))
