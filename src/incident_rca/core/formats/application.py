"""ISO timestamp + bare level parser."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .base import PatternParser


@dataclass(frozen=True, slots=True)
class ApplicationParser(PatternParser):
    """Parse '<iso-timestamp> <LEVEL> <message>' lines."""

    pattern = re.compile(
        r"^(?P<ts>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d{1,6})?(?:Z|[+-]\d{2}:?\d{2})?)"
        r"\s+(?P<level>\w+)\s+(?P<msg>.+)$"
    )
    source = "application"
