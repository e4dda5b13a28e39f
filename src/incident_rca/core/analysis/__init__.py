"""Incident analysis package."""

from __future__ import annotations

from .extraction import (
    ORACLE_FAILED_ROOT_CAUSE,
    PARSE_FAILED_ROOT_CAUSE,
    find_balanced,
    parse_fixes,
    parse_test_case,
    parse_verdict,
)
from .models import (
    AnalysisConfig,
    AnalysisRequest,
    AnalysisResult,
    CodeAnalysis,
    FeatureFlags,
    Fix,
    OracleConfig,
    UnitTest,
    Verdict,
)
from .oracle import GeminiOracle, Oracle
from .service import IncidentAnalyzer, analyze_incident, build_request, extract_search_terms

__all__ = [
    "AnalysisConfig",
    "AnalysisRequest",
    "AnalysisResult",
    "CodeAnalysis",
    "FeatureFlags",
    "Fix",
    "GeminiOracle",
    "IncidentAnalyzer",
    "ORACLE_FAILED_ROOT_CAUSE",
    "Oracle",
    "OracleConfig",
    "PARSE_FAILED_ROOT_CAUSE",
    "UnitTest",
    "Verdict",
    "analyze_incident",
    "build_request",
    "extract_search_terms",
    "find_balanced",
    "parse_fixes",
    "parse_test_case",
    "parse_verdict",
]
