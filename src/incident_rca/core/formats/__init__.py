"""Log line formats.

Contains parsers for the supported log formats and the ordered composite.
"""

from __future__ import annotations

from .apache import ApacheErrorParser
from .application import ApplicationParser
from .base import LogParser, PatternParser
from .bracket import BracketTimestampParser
from .composite import CompositeParser
from .fields import normalize_level, parse_calendar_time
from .jsonl import JsonLinesParser
from .nginx import NginxErrorParser

__all__ = [
    "ApacheErrorParser",
    "ApplicationParser",
    "BracketTimestampParser",
    "CompositeParser",
    "JsonLinesParser",
    "LogParser",
    "NginxErrorParser",
    "PatternParser",
    "normalize_level",
    "parse_calendar_time",
]
