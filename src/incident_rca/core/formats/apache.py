"""Apache error log parser."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .base import PatternParser


@dataclass(frozen=True, slots=True)
class ApacheErrorParser(PatternParser):
    """Parse '[<timestamp>] [<level>] <message>' lines.

    Apache 2.4 prefixes the level with the module name ('[core:error]'),
    the prefix is dropped.
    """

    pattern = re.compile(
        r"^\[(?P<ts>[^\]]+)\]\s+\[(?:\w+:)?(?P<level>\w+)\]\s+(?P<msg>.+)$"
    )
    source = "apache"
