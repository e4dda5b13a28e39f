"""Analysis tool implementation.

Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from incident_rca.core.aggregation import extract_error_patterns
from incident_rca.core.analysis import FeatureFlags, IncidentAnalyzer, Oracle, build_request
from incident_rca.core.analysis.oracle import GeminiOracle
from incident_rca.core.errors import InvalidRequestError
from incident_rca.core.log_service import load_log_file
from incident_rca.core.models import LogBatch
from incident_rca.core.repositories import RepositoryFederation

MAX_LOG_LINES = 50_000


def _batch_to_dict(batch: LogBatch) -> dict[str, Any]:
    """Convert batch statistics into a JSON-serializable dict."""
    span = batch.time_span
    return {
        "total_count": batch.total_count,
        "error_count": batch.error_count,
        "warn_count": batch.warn_count,
        "time_span": {
            "start": span.start.isoformat() if span.start is not None else None,
            "end": span.end.isoformat() if span.end is not None else None,
        },
        "sources": sorted(batch.distinct_sources),
        "patterns": extract_error_patterns(batch.records),
    }


async def analyze_incident_impl(
    *,
    narrative: str,
    log_lines: Sequence[str] | None = None,
    log_paths: Sequence[str] | None = None,
    include_fixes: bool = True,
    include_tests: bool = True,
    include_code_search: bool = True,
    federation: RepositoryFederation | None = None,
    oracle: Oracle | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_incident` tool.

    Notes
    -----
    - log_paths are read whole, then log_lines are appended after them.
    - Lines no format recognizes are dropped; when nothing is recognized the
      analysis runs on the narrative alone.
    - The oracle is created from GEMINI_API_KEY/GOOGLE_API_KEY unless given.
    """
    if not narrative or not narrative.strip():
        raise InvalidRequestError("narrative must not be empty")
    if oracle is None:
        oracle = GeminiOracle()

    lines: list[str] | None = None
    if log_paths or log_lines:
        lines = []
        for path in log_paths or ():
            lines.extend(await load_log_file(path))
        lines.extend(log_lines or ())
        if len(lines) > MAX_LOG_LINES:
            lines = lines[-MAX_LOG_LINES:]

    request = build_request(
        narrative,
        lines,
        flags=FeatureFlags(
            include_fixes=include_fixes,
            include_tests=include_tests,
            include_code_search=include_code_search,
        ),
    )
    result = await IncidentAnalyzer(oracle, federation).analyze(request)

    out = result.model_dump()
    out["log_summary"] = _batch_to_dict(request.batch) if request.batch is not None else None
    return out
