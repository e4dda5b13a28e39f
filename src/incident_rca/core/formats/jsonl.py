"""JSON-lines parser."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from ..models import LogLevel, LogRecord
from .fields import first_present


@dataclass(frozen=True, slots=True)
class JsonLinesParser:
    """Parse JSON-lines logs (one JSON object per line)."""

    time_keys: Sequence[str] = ("timestamp", "time", "@timestamp")
    level_keys: Sequence[str] = ("level", "severity")
    msg_keys: Sequence[str] = ("message", "msg")
    source_keys: Sequence[str] = ("service", "source", "logger")
    stack_keys: Sequence[str] = ("stack", "stackTrace")
    context_keys: Sequence[str] = ("context", "meta")

    def parse(self, line: str) -> LogRecord | None:
        """Parse a JSON object line into a LogRecord."""
        s = line.strip()
        if not s or not (s.startswith("{") and s.endswith("}")):
            return None

        try:
            obj = json.loads(s)
        except json.JSONDecodeError:
            return None
        if not isinstance(obj, dict):
            return None

        ts_val = first_present(obj, self.time_keys)
        timestamp = str(ts_val) if ts_val is not None else ""

        # Level is lowercased but otherwise taken as written.
        lvl_raw = str(first_present(obj, self.level_keys) or "info").lower()
        try:
            level: str = LogLevel(lvl_raw)
        except ValueError:
            level = lvl_raw

        msg_val = first_present(obj, self.msg_keys)
        if msg_val is None:
            message = s
        elif isinstance(msg_val, str):
            message = msg_val
        else:
            message = json.dumps(msg_val, ensure_ascii=False)

        src_val = first_present(obj, self.source_keys)
        stack_val = first_present(obj, self.stack_keys)
        if isinstance(stack_val, list):
            stack_val = "\n".join(str(frame) for frame in stack_val)
        ctx_val = first_present(obj, self.context_keys)

        return LogRecord(
            timestamp=timestamp,
            level=level,
            message=message,
            source=str(src_val) if src_val is not None else None,
            stack_trace=str(stack_val) if stack_val is not None else None,
            context=MappingProxyType(dict(ctx_val)) if isinstance(ctx_val, dict) else None,
        )
