"""Core data models for log normalization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Normalized severity levels used by the analysis pipeline."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


@dataclass(frozen=True, slots=True)
class LogRecord:
    """Normalized log record produced by the line parsers.

    ``level`` is a LogLevel member, except for JSON-origin records whose level
    was not recognized; those keep the lowercased value as written.
    """

    timestamp: str  # as written in the line; "" when missing
    level: str
    message: str
    source: str | None = None
    stack_trace: str | None = None
    context: Mapping[str, Any] | None = None  # read-only view


@dataclass(frozen=True, slots=True)
class TimeSpan:
    """Calendar span covered by the parseable record timestamps."""

    start: datetime | None = None
    end: datetime | None = None


@dataclass(frozen=True, slots=True)
class LogBatch:
    """Summary statistics over an ordered sequence of records."""

    records: tuple[LogRecord, ...]
    total_count: int
    error_count: int
    warn_count: int
    time_span: TimeSpan
    distinct_sources: frozenset[str]
