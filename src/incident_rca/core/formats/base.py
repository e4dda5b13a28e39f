"""Parser interface and pattern-based parser helper."""

from __future__ import annotations

import re
from typing import ClassVar, Protocol

from ..models import LogRecord
from .fields import normalize_level


class LogParser(Protocol):
    """Parser interface: return LogRecord if line matches, else None."""

    def parse(self, line: str) -> LogRecord | None:
        """Parse a log line into a LogRecord if recognized."""
        ...


class PatternParser:
    """Shared logic for '<timestamp> <level> <message>' style regex formats.

    Subclasses provide a compiled pattern with ``ts``, ``level`` and ``msg``
    groups and the fixed ``source`` tag of their format family.
    """

    pattern: ClassVar[re.Pattern[str]]
    source: ClassVar[str]

    __slots__ = ()

    def parse(self, line: str) -> LogRecord | None:
        """Parse a line matching the format's pattern into a LogRecord."""
        m = self.pattern.match(line.strip())
        if not m:
            return None

        level = normalize_level(m.group("level"))
        if level is None:
            return None

        return LogRecord(
            timestamp=m.group("ts").strip(),
            level=level,
            message=m.group("msg").strip(),
            source=self.source,
        )
