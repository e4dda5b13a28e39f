"""Bracketed timestamp parser."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .base import PatternParser


@dataclass(frozen=True, slots=True)
class BracketTimestampParser(PatternParser):
    """Parse '[<timestamp>] <LEVEL>: <message>' lines."""

    pattern = re.compile(r"^\[(?P<ts>[^\]]+)\]\s+(?P<level>\w+):\s+(?P<msg>.+)$")
    source = "application"
