"""Analysis request/result models and configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import LogBatch

Priority = Literal["high", "medium", "low"]
FixKind = Literal["code", "configuration", "infrastructure"]


@dataclass(frozen=True, slots=True)
class FeatureFlags:
    include_fixes: bool = True
    include_tests: bool = True
    include_code_search: bool = True


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """Evidence for one analysis run."""

    narrative: str
    batch: LogBatch | None = None
    flags: FeatureFlags = FeatureFlags()


class Verdict(BaseModel):
    summary: str | None = Field(default=None, description="Brief summary of the analysis.")
    root_cause: str = Field(description="Primary root cause of the incident.")
    affected_components: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0, description="0..1 confidence of the verdict.")
    reasoning: str = Field(description="How the conclusion was reached.")


class Fix(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    priority: Priority
    kind: FixKind
    code: str | None = None
    file_path: str | None = None
    explanation: str


class UnitTest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    fix_id: str = Field(description="Id of the fix this test covers.")
    description: str
    framework: str
    code: str
    file_path: str


class CodeAnalysis(BaseModel):
    affected_files: list[str] = Field(default_factory=list)
    potential_issues: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    backends_used: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    summary: str | None = None
    root_cause: str
    affected_components: list[str] = Field(default_factory=list)
    suggested_fixes: list[Fix] = Field(default_factory=list)
    unit_tests: list[UnitTest] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    code_analysis: CodeAnalysis | None = None


@dataclass(frozen=True, slots=True)
class OracleConfig:
    model: str = "gemini-2.5-flash"
    max_retries: int = 3


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    oracle_timeout_s: float = 120.0
    max_output_tokens: int = 4000
    temperature: float = 0.1

    # Evidence included in the prompt.
    max_error_records: int = 10
    max_warn_records: int = 5
    redact_evidence: bool = False

    # Code search.
    max_search_terms: int = 10
    max_term_records: int = 5
    max_affected_files: int = 20

    # Fix/test generation.
    max_fixes: int = 5
    max_tests: int = 3


def _env_float(name: str) -> float | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = float(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def resolve_analysis_config(cfg: AnalysisConfig | None) -> AnalysisConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = AnalysisConfig()

    timeout = _env_float("INCIDENT_RCA_ORACLE_TIMEOUT")
    if timeout is not None:
        cfg = replace(cfg, oracle_timeout_s=timeout)

    redact = os.getenv("INCIDENT_RCA_REDACT")
    if redact:
        cfg = replace(cfg, redact_evidence=redact.strip().lower() in ("1", "true", "yes", "on"))

    return cfg


def resolve_oracle_config(cfg: OracleConfig | None) -> OracleConfig:
    """Return oracle config with optional env overrides applied."""
    if cfg is None:
        cfg = OracleConfig()

    model = os.getenv("INCIDENT_RCA_MODEL")
    if model:
        cfg = replace(cfg, model=model)
    return cfg
