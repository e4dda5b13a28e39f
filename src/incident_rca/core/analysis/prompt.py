"""Prompt construction for the analysis oracle.

The JSON shapes requested here are the contract with the oracle; the
extraction module parses exactly these keys.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from ..aggregation import extract_error_patterns, records_at_level
from ..models import LogBatch, LogLevel, LogRecord
from .models import AnalysisConfig, Fix
from .redaction import redact_text

VERDICT_SHAPE = """{
  "summary": "Brief summary of the analysis",
  "rootCause": "The primary root cause of the issue",
  "affectedComponents": ["component1", "component2"],
  "confidence": 0.95,
  "reasoning": "Detailed explanation of how you arrived at this conclusion, including analysis of log patterns, timing, and system behavior",
  "immediateActions": ["action1", "action2"],
  "preventionMeasures": ["measure1", "measure2"]
}"""

FIX_SHAPE = """[
  {
    "description": "Fix description",
    "priority": "high|medium|low",
    "type": "code|configuration|infrastructure",
    "code": "actual code to implement",
    "filePath": "path/to/file.ts",
    "explanation": "Why this fix addresses the issue"
  }
]"""

TEST_SHAPE = """{
  "description": "Test description",
  "framework": "jest|mocha|pytest",
  "code": "complete test code",
  "filePath": "path/to/test/file"
}"""


def _fmt_time(ts: datetime | None) -> str:
    return ts.isoformat() if ts is not None else "unknown"


def _fmt_record(r: LogRecord, *, with_stack: bool) -> str:
    """Format a record for the evidence section of the prompt."""
    level = r.level.value if isinstance(r.level, LogLevel) else r.level
    out = f"[{r.timestamp}] {level.upper()}: {r.message}"
    if r.source:
        out += f" (Source: {r.source})"
    if with_stack and r.stack_trace:
        out += f"\nStack: {r.stack_trace}"
    return out


def build_evidence(batch: LogBatch, *, cfg: AnalysisConfig) -> str:
    """Render the log batch statistics and most recent notable records."""
    errors = records_at_level(batch.records, LogLevel.ERROR, cfg.max_error_records)
    warns = records_at_level(batch.records, LogLevel.WARN, cfg.max_warn_records)
    patterns = extract_error_patterns(batch.records)

    sections = [
        "Log Analysis Context:\n"
        f"- Total log entries: {batch.total_count}\n"
        f"- Error count: {batch.error_count}\n"
        f"- Warning count: {batch.warn_count}\n"
        f"- Time range: {_fmt_time(batch.time_span.start)} to {_fmt_time(batch.time_span.end)}\n"
        f"- Sources: {', '.join(sorted(batch.distinct_sources)) or 'none'}",
        "Recent Error Log Entries:\n"
        + ("\n\n".join(_fmt_record(r, with_stack=True) for r in errors) or "none"),
        "Recent Warning Log Entries:\n"
        + ("\n\n".join(_fmt_record(r, with_stack=False) for r in warns) or "none"),
        f"Error Patterns Detected:\n{', '.join(patterns) or 'none'}",
    ]
    text = "\n\n".join(sections) + "\n"
    if cfg.redact_evidence:
        text = redact_text(text)
    return text


def build_analysis_prompt(
    narrative: str,
    batch: LogBatch | None,
    *,
    cfg: AnalysisConfig,
) -> str:
    """Build the root-cause analysis prompt from narrative and log evidence."""
    prompt = (
        "You are an expert system administrator and software engineer specializing "
        "in root cause analysis of system errors and incidents.\n\n"
        f"User's incident description:\n{narrative}\n\n"
    )

    if batch is not None and batch.total_count > 0:
        prompt += build_evidence(batch, cfg=cfg) + "\n"

    prompt += (
        "Please analyze this incident and provide a comprehensive root cause analysis. "
        "Your response should be in the following JSON format:\n\n"
        f"{VERDICT_SHAPE}\n\n"
        "Focus on:\n"
        "1. Identifying the primary root cause based on log patterns and user description\n"
        "2. Determining which system components are affected\n"
        "3. Providing a confidence score (0.0 to 1.0) for your analysis\n"
        "4. Explaining your reasoning process clearly\n"
        "5. Suggesting immediate actions to resolve the issue\n"
        "6. Recommending prevention measures for the future\n\n"
        "Be specific and actionable in your recommendations."
    )
    return prompt


def build_fix_prompt(root_cause: str, patterns: Sequence[str] | None) -> str:
    """Build the prompt requesting a JSON array of fixes."""
    prompt = f'Based on the root cause analysis: "{root_cause}"\n\n'
    if patterns is not None:
        prompt += f"And the following error patterns:\n{', '.join(patterns) or 'none'}\n\n"
    prompt += (
        "Generate 3-5 specific code fixes or configuration changes to resolve this issue. "
        "For each fix, provide:\n\n"
        "1. A clear description of what needs to be changed\n"
        "2. The priority level (high/medium/low)\n"
        "3. The type of fix (code/configuration/infrastructure)\n"
        "4. Actual code examples where applicable\n"
        "5. The file path where the fix should be applied\n"
        "6. A detailed explanation of why this fix addresses the root cause\n\n"
        "Format your response as a JSON array of fix objects:\n\n"
        f"{FIX_SHAPE}"
    )
    return prompt


def build_test_prompt(fix: Fix) -> str:
    """Build the prompt requesting one unit test for a fix."""
    return (
        "Generate a comprehensive unit test for this fix:\n\n"
        f"Fix Description: {fix.description}\n"
        f"File Path: {fix.file_path}\n"
        f"Code:\n{fix.code}\n\n"
        "Generate a unit test that:\n"
        "1. Tests the main functionality\n"
        "2. Tests error conditions\n"
        "3. Tests edge cases\n"
        "4. Uses appropriate testing framework "
        "(Jest/Mocha for TypeScript/JavaScript, pytest for Python)\n\n"
        "Format as JSON:\n"
        f"{TEST_SHAPE}"
    )
