"""Batch statistics and error-pattern tagging over classified records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from .formats import parse_calendar_time
from .models import LogBatch, LogLevel, LogRecord, TimeSpan

# Tag -> keywords (any match adds the tag). Order fixes emission order
# for tags found in the same message.
ERROR_PATTERNS: dict[str, tuple[str, ...]] = {
    "connection": ("connection",),
    "timeout": ("timeout",),
    "not-found": ("not found",),
    "auth": ("permission", "unauthorized"),
    "memory": ("memory",),
    "disk": ("disk", "space"),
    "network": ("network",),
}


def summarize_records(records: Iterable[LogRecord]) -> LogBatch:
    """Reduce an ordered sequence of records into a LogBatch."""
    recs = tuple(records)

    error_count = 0
    warn_count = 0
    sources: set[str] = set()
    times: list[datetime] = []

    for r in recs:
        if r.level == LogLevel.ERROR:
            error_count += 1
        elif r.level == LogLevel.WARN:
            warn_count += 1
        if r.source:
            sources.add(r.source)

        # Unparseable timestamps still count, but not toward the span.
        ts = parse_calendar_time(r.timestamp)
        if ts is not None:
            times.append(ts)

    span = TimeSpan(start=min(times), end=max(times)) if times else TimeSpan()

    return LogBatch(
        records=recs,
        total_count=len(recs),
        error_count=error_count,
        warn_count=warn_count,
        time_span=span,
        distinct_sources=frozenset(sources),
    )


def extract_error_patterns(records: Iterable[LogRecord]) -> list[str]:
    """Return pattern tags found in error messages, in first-seen order."""
    tags: dict[str, None] = {}
    for r in records:
        if r.level != LogLevel.ERROR:
            continue
        message = r.message.lower()
        for tag, keywords in ERROR_PATTERNS.items():
            if any(k in message for k in keywords):
                tags.setdefault(tag, None)
    return list(tags)


def records_at_level(records: Sequence[LogRecord], level: LogLevel, limit: int) -> list[LogRecord]:
    """Return the ``limit`` most recent records at ``level``, oldest first."""
    if limit <= 0:
        return []
    matching = [r for r in records if r.level == level]
    return matching[-limit:]
