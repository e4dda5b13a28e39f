"""Nginx error log parser."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .base import PatternParser


@dataclass(frozen=True, slots=True)
class NginxErrorParser(PatternParser):
    """Parse 'YYYY/MM/DD HH:MM:SS [level] message' lines."""

    pattern = re.compile(
        r"^(?P<ts>\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2})\s+\[(?P<level>\w+)\]\s+(?P<msg>.+)$"
    )
    source = "nginx"
