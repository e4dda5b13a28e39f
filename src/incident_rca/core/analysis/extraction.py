"""Extraction of structured data from free-form oracle responses.

The oracle is asked for JSON but may wrap it in prose, truncate it or ignore
the shape entirely. The first top-level JSON object (or array) in the text is
taken and validated through lenient wire models; everything that does not fit
the expected shape falls back to fixed defaults so callers always get fully
populated models.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import PurePosixPath
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .models import Fix, FixKind, Priority, UnitTest, Verdict

logger = logging.getLogger(__name__)

DEFAULT_ROOT_CAUSE = "Unable to determine root cause"
DEFAULT_REASONING = "Analysis completed"
DEFAULT_CONFIDENCE = 0.5
DEGRADED_CONFIDENCE = 0.3
PARSE_FAILED_ROOT_CAUSE = "Error analysis completed, but response parsing failed"
ORACLE_FAILED_ROOT_CAUSE = "Error analysis could not be completed: the analysis service failed"

PRIORITIES = ("high", "medium", "low")
FIX_KINDS = ("code", "configuration", "infrastructure")
MAX_FIXES = 5

_JS_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
_FRAMEWORKS = {
    ".py": "pytest",
    ".go": "go test",
    ".java": "junit",
    ".kt": "junit",
    ".rb": "rspec",
    ".rs": "cargo test",
}


def find_balanced(text: str, open_ch: str = "{", close_ch: str = "}") -> str | None:
    """Return the first top-level balanced ``open_ch ... close_ch`` span.

    Brackets inside JSON string literals are ignored. Returns None when no
    opening bracket exists or the first one is never closed.
    """
    start = text.find(open_ch)
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _load_first(text: str, open_ch: str, close_ch: str) -> Any:
    """Parse the first balanced span; raises ValueError when there is none."""
    span = find_balanced(text, open_ch, close_ch)
    if span is None:
        raise ValueError(f"No JSON {'object' if open_ch == '{' else 'array'} found in response")
    try:
        return json.loads(span)
    except RecursionError as e:
        raise ValueError("JSON response is nested too deeply") from e


def _optional_text(val: Any) -> str | None:
    return val if isinstance(val, str) and val.strip() else None


def _default_of(cls: type[BaseModel], info: ValidationInfo) -> Any:
    return cls.model_fields[info.field_name].default


class _WireModel(BaseModel):
    """Lenient view of one oracle JSON object; never rejects a value."""

    model_config = ConfigDict(extra="ignore")


class _VerdictWire(_WireModel):
    summary: str | None = None
    root_cause: str = Field(
        default=DEFAULT_ROOT_CAUSE, validation_alias=AliasChoices("rootCause", "root_cause")
    )
    affected_components: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("affectedComponents", "affected_components"),
    )
    confidence: float = DEFAULT_CONFIDENCE
    reasoning: str = DEFAULT_REASONING

    @field_validator("summary", mode="before")
    @classmethod
    def summary_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("root_cause", "reasoning", mode="before")
    @classmethod
    def required_text(cls, v: Any, info: ValidationInfo) -> str:
        return _optional_text(v) or _default_of(cls, info)

    @field_validator("affected_components", mode="before")
    @classmethod
    def component_names(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str) and item.strip()]

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return DEFAULT_CONFIDENCE
        if 1.0 < v <= 100.0:
            # Reported as a percentage.
            v = v / 100.0
        return min(1.0, max(0.0, float(v)))


class _FixWire(_WireModel):
    description: str = "Generated fix"
    priority: Priority = "medium"
    kind: FixKind = Field(default="code", validation_alias=AliasChoices("type", "kind"))
    code: str | None = None
    file_path: str | None = Field(
        default=None, validation_alias=AliasChoices("filePath", "file_path")
    )
    explanation: str = "Generated fix explanation"

    @field_validator("description", "explanation", mode="before")
    @classmethod
    def required_text(cls, v: Any, info: ValidationInfo) -> str:
        return _optional_text(v) or _default_of(cls, info)

    @field_validator("code", "file_path", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("priority", "kind", mode="before")
    @classmethod
    def known_choice(cls, v: Any, info: ValidationInfo) -> str:
        allowed = PRIORITIES if info.field_name == "priority" else FIX_KINDS
        name = str(v or "").strip().lower()
        return name if name in allowed else _default_of(cls, info)


class _TestWire(_WireModel):
    description: str | None = None
    framework: str | None = None
    code: str | None = None
    file_path: str | None = Field(
        default=None, validation_alias=AliasChoices("filePath", "file_path")
    )

    @field_validator("*", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> str | None:
        return _optional_text(v)


def degraded_verdict(reasoning: str, *, root_cause: str = PARSE_FAILED_ROOT_CAUSE) -> Verdict:
    return Verdict(
        root_cause=root_cause,
        affected_components=[],
        confidence=DEGRADED_CONFIDENCE,
        reasoning=reasoning,
    )


def parse_verdict(text: str) -> Verdict:
    """Parse an oracle response into a Verdict; never raises."""
    try:
        obj = _load_first(text, "{", "}")
        if not isinstance(obj, dict):
            raise ValueError("Verdict is not a JSON object")
        wire = _VerdictWire.model_validate(obj)
    except ValueError as e:  # JSONDecodeError and ValidationError are ValueErrors
        logger.warning("Failed to parse verdict: %s", e)
        return degraded_verdict(text)

    return Verdict(**wire.model_dump())


def fallback_fixes() -> list[Fix]:
    """The canned fix returned when fix generation fails."""
    return [
        Fix(
            id="fix-1",
            description="Add error handling and retry logic",
            priority="high",
            kind="code",
            explanation=(
                "Implement proper error handling to gracefully handle failures "
                "and prevent cascading issues"
            ),
        )
    ]


def parse_fixes(text: str, *, max_fixes: int = MAX_FIXES) -> list[Fix]:
    """Parse a JSON array of fixes; falls back to the canned fix.

    Ids are positional from zero (``fix-0``, ``fix-1``, ...).
    """
    try:
        items = _load_first(text, "[", "]")
        if not isinstance(items, list):
            raise ValueError("Fixes are not a JSON array")
        wires = [_FixWire.model_validate(item) for item in items if isinstance(item, dict)]
    except ValueError as e:
        logger.warning("Failed to parse fixes: %s", e)
        return fallback_fixes()

    if not wires:
        logger.warning("Fix response contained no fix objects")
        return fallback_fixes()
    return [
        Fix(id=f"fix-{i}", **wire.model_dump()) for i, wire in enumerate(wires[:max_fixes])
    ]


def default_test_path(file_path: str) -> str:
    """Derive a test file path from the path of the fixed file."""
    p = PurePosixPath(file_path)
    suffix = p.suffix.lower()
    if suffix == ".py":
        return str(p.with_name(f"test_{p.name}"))
    if suffix == ".go":
        return str(p.with_name(f"{p.stem}_test{p.suffix}"))
    if suffix:
        return str(p.with_name(f"{p.stem}.test{p.suffix}"))
    return f"{file_path}.test"


def default_framework(file_path: str) -> str:
    suffix = PurePosixPath(file_path).suffix.lower()
    if suffix in _JS_SUFFIXES:
        return "jest"
    return _FRAMEWORKS.get(suffix, "jest")


def parse_test_case(text: str, fix: Fix) -> UnitTest | None:
    """Parse a single test object generated for ``fix``; None on failure."""
    try:
        obj = _load_first(text, "{", "}")
        if not isinstance(obj, dict):
            raise ValueError("Test is not a JSON object")
        wire = _TestWire.model_validate(obj)
    except ValueError as e:
        logger.warning("Failed to parse test for %s: %s", fix.id, e)
        return None

    file_path = fix.file_path or ""
    framework = wire.framework or default_framework(file_path)
    comment = "#" if framework == "pytest" else "//"
    return UnitTest(
        id=f"test-{fix.id}",
        fix_id=fix.id,
        description=wire.description or f"Test for {fix.description}",
        framework=framework,
        code=wire.code or f"{comment} Test code generation failed",
        file_path=wire.file_path or default_test_path(file_path),
    )
