"""Log classification and loading utilities.

This module is the integration point that turns raw log text (pasted lines or
uploaded files) into normalized records.
"""

from __future__ import annotations

import gzip
import logging
from collections.abc import Iterable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .formats import (
    ApacheErrorParser,
    ApplicationParser,
    BracketTimestampParser,
    CompositeParser,
    JsonLinesParser,
    LogParser,
    NginxErrorParser,
)
from .models import LogRecord

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


def default_parser() -> LogParser:
    """Default parser chain (first match wins)."""
    return CompositeParser(
        parsers=[
            BracketTimestampParser(),
            JsonLinesParser(),
            NginxErrorParser(),
            ApacheErrorParser(),
            ApplicationParser(),
        ]
    )


def classify_line(line: str, *, parser: LogParser | None = None) -> LogRecord | None:
    """Classify one raw line; None when no format recognizes it."""
    if not line.strip():
        return None
    return (parser or default_parser()).parse(line.rstrip("\r\n"))


def classify_lines(
    lines: str | Iterable[str],
    *,
    parser: LogParser | None = None,
) -> list[LogRecord]:
    """Classify lines in order, dropping the ones no format recognizes."""
    if isinstance(lines, str):
        lines = lines.splitlines()
    parser = parser or default_parser()

    records: list[LogRecord] = []
    dropped = 0
    for line in lines:
        if not line.strip():
            continue
        record = classify_line(line, parser=parser)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.debug("Dropped %s unrecognized log lines", dropped)
    return records


async def load_log_file(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[str]:
    """Read an uploaded log file (plain or .gz) into a list of lines."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        content = await f.read()
    return content.splitlines()


async def load_records(
    log_paths: Sequence[str | Path],
    *,
    parser: LogParser | None = None,
    encoding: str = "utf-8",
) -> list[LogRecord]:
    """Load and classify several uploaded log files, in the given order."""
    parser = parser or default_parser()
    records: list[LogRecord] = []
    for p in log_paths:
        lines = await load_log_file(p, encoding=encoding)
        records.extend(classify_lines(lines, parser=parser))
    return records
