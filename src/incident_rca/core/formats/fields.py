"""Helpers shared by the line parsers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from ..models import LogLevel

_LEVEL_ALIASES = {
    "warning": "warn",
    "err": "error",
    "fatal": "error",
    "critical": "error",
    "crit": "error",
    "alert": "error",
    "emerg": "error",
    "emergency": "error",
    "severe": "error",
    "notice": "info",
    "trace": "debug",
}

_CALENDAR_FORMATS: Sequence[str] = (
    "%Y/%m/%d %H:%M:%S",  # nginx error log
    "%a %b %d %H:%M:%S %Y",  # apache 2.2
    "%a %b %d %H:%M:%S.%f %Y",  # apache 2.4
    "%d/%b/%Y:%H:%M:%S %z",  # access log
    "%Y-%m-%d %H:%M:%S,%f",  # python logging
)


def normalize_level(value: str) -> LogLevel | None:
    """Map a level token to a LogLevel, or None when unrecognized."""
    name = value.strip().lower()
    name = _LEVEL_ALIASES.get(name, name)
    try:
        return LogLevel(name)
    except ValueError:
        return None


def parse_calendar_time(value: str) -> datetime | None:
    """Parse a log timestamp as calendar time (UTC), or None."""
    s = value.strip()
    if not s:
        return None

    if s.isdigit():
        n = int(s)
        # Epoch milliseconds vs seconds.
        try:
            return datetime.fromtimestamp(n / 1000 if n > 10**11 else n, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    ts: datetime | None = None
    try:
        ts = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _CALENDAR_FORMATS:
            try:
                ts = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if ts is None:
        return None

    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def first_present(obj: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first truthy value among the given keys."""
    for key in keys:
        val = obj.get(key)
        if val:
            return val
    return None
