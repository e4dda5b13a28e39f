"""Parser composition utilities."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..models import LogRecord
from .base import LogParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompositeParser:
    """Try parsers in order and return the first successful parse.

    A parser that raises is treated as a non-match for that line.
    """

    parsers: Sequence[LogParser]

    def parse(self, line: str) -> LogRecord | None:
        """Return the first successful parse from the configured parsers."""
        for p in self.parsers:
            try:
                out = p.parse(line)
            except Exception as e:
                logger.debug("%s failed on line %r: %s", type(p).__name__, line[:200], e)
                continue
            if out is not None:
                return out
        return None
