"""Incident analysis orchestration.

Runs one analysis request through the sequential phases: prompt, verdict,
code search, fix generation, test generation. Oracle and backend failures
degrade the corresponding phase to fixed fallback content; the only error a
caller sees is an invalid request.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable, Sequence

from ..aggregation import extract_error_patterns, records_at_level, summarize_records
from ..errors import InvalidRequestError
from ..log_service import classify_lines
from ..models import LogBatch, LogLevel
from ..repositories import FederatedSearch, RepositoryFederation
from .extraction import (
    ORACLE_FAILED_ROOT_CAUSE,
    degraded_verdict,
    fallback_fixes,
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
    UnitTest,
    Verdict,
    resolve_analysis_config,
)
from .oracle import Oracle
from .prompt import build_analysis_prompt, build_fix_prompt, build_test_prompt

logger = logging.getLogger(__name__)

NO_BACKENDS_ISSUE = "No repository backends connected for code analysis"

_WORD_RE = re.compile(r"[a-z0-9]+")
ROOT_CAUSE_STOP_WORDS = frozenset({"the", "and", "or", "but", "error", "issue"})
MESSAGE_STOP_WORDS = frozenset({"the", "and", "or", "but", "error", "failed"})


def _words(text: str, stop_words: frozenset[str]) -> Iterable[str]:
    for word in _WORD_RE.findall(text.lower()):
        if len(word) >= 3 and word not in stop_words:
            yield word


def extract_search_terms(
    root_cause: str,
    batch: LogBatch,
    *,
    max_terms: int = 10,
    max_records: int = 5,
) -> list[str]:
    """Keywords for code search from the root cause and recent error messages."""
    terms: dict[str, None] = {}
    for word in _words(root_cause, ROOT_CAUSE_STOP_WORDS):
        terms.setdefault(word, None)
    for record in records_at_level(batch.records, LogLevel.ERROR, max_records):
        for word in _words(record.message, MESSAGE_STOP_WORDS):
            terms.setdefault(word, None)
    return list(terms)[:max_terms]


class IncidentAnalyzer:
    """Turns an AnalysisRequest into an AnalysisResult."""

    def __init__(
        self,
        oracle: Oracle,
        federation: RepositoryFederation | None = None,
        *,
        cfg: AnalysisConfig | None = None,
    ) -> None:
        self.oracle = oracle
        self.federation = federation
        self.cfg = resolve_analysis_config(cfg)

    async def _generate(self, prompt: str) -> str:
        """One bounded oracle call."""
        return await asyncio.wait_for(
            self.oracle.generate(
                prompt,
                max_output_tokens=self.cfg.max_output_tokens,
                temperature=self.cfg.temperature,
            ),
            timeout=self.cfg.oracle_timeout_s,
        )

    async def determine_verdict(self, request: AnalysisRequest) -> Verdict:
        prompt = build_analysis_prompt(request.narrative, request.batch, cfg=self.cfg)
        try:
            text = await self._generate(prompt)
        except Exception as e:
            logger.warning("Verdict oracle call failed: %s", str(e) or type(e).__name__)
            return degraded_verdict(
                f"The analysis service call failed ({type(e).__name__}). "
                "Review the attached log evidence manually.",
                root_cause=ORACLE_FAILED_ROOT_CAUSE,
            )
        return parse_verdict(text)

    async def analyze_code(self, batch: LogBatch, root_cause: str) -> CodeAnalysis:
        """Search connected repositories for code implicated by the verdict."""
        connected = self.federation.list_connected() if self.federation is not None else ()
        if not connected:
            return CodeAnalysis(potential_issues=[NO_BACKENDS_ISSUE])

        terms = extract_search_terms(
            root_cause,
            batch,
            max_terms=self.cfg.max_search_terms,
            max_records=self.cfg.max_term_records,
        )
        names = {h.id: h.name for h in connected}
        if not terms:
            return CodeAnalysis(backends_used=[h.name for h in connected])

        results: list[FederatedSearch | BaseException] = await asyncio.gather(
            *(self.federation.search_detailed(term) for term in terms),
            return_exceptions=True,
        )

        # Merge after every term completed; nothing is shared between tasks.
        files: dict[str, None] = {}
        issues: dict[str, None] = {}
        used: dict[str, None] = {}
        for term, res in zip(terms, results):
            if isinstance(res, BaseException):
                if isinstance(res, asyncio.CancelledError):
                    raise res
                logger.warning("Code search for %r failed: %s", term, res)
                issues.setdefault(f"Code search for '{term}' failed", None)
                continue
            for rid in res.backends:
                used.setdefault(names.get(rid, rid), None)
            for rid, msg in res.failures.items():
                issues.setdefault(f"Failed to analyze code in {names.get(rid, rid)}: {msg}", None)
            for hit in res.hits:
                if hit.path:
                    files.setdefault(hit.path, None)

        return CodeAnalysis(
            affected_files=list(files)[: self.cfg.max_affected_files],
            potential_issues=list(issues),
            backends_used=list(used),
        )

    async def generate_fixes(self, root_cause: str, batch: LogBatch | None) -> list[Fix]:
        patterns = extract_error_patterns(batch.records) if batch is not None else None
        try:
            text = await self._generate(build_fix_prompt(root_cause, patterns))
        except Exception as e:
            logger.warning("Fix oracle call failed: %s", str(e) or type(e).__name__)
            return fallback_fixes()
        return parse_fixes(text, max_fixes=self.cfg.max_fixes)

    async def _generate_test(self, fix: Fix) -> UnitTest | None:
        try:
            text = await self._generate(build_test_prompt(fix))
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning("Test oracle call for %s failed: %s", fix.id, reason)
            return None
        return parse_test_case(text, fix)

    async def generate_tests(self, fixes: Sequence[Fix]) -> list[UnitTest]:
        """One test per fix among the first few that carry code and a path."""
        eligible = [f for f in fixes[: self.cfg.max_tests] if f.code and f.file_path]
        tests = await asyncio.gather(*(self._generate_test(f) for f in eligible))
        return [t for t in tests if t is not None]

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run all phases for one request."""
        if not request.narrative.strip():
            raise InvalidRequestError("An incident description is required.")

        flags = request.flags
        verdict = await self.determine_verdict(request)

        code_analysis = None
        if flags.include_code_search and request.batch is not None:
            code_analysis = await self.analyze_code(request.batch, verdict.root_cause)

        fixes: list[Fix] = []
        if flags.include_fixes:
            fixes = await self.generate_fixes(verdict.root_cause, request.batch)

        tests: list[UnitTest] = []
        if flags.include_tests and fixes:
            tests = await self.generate_tests(fixes)

        return AnalysisResult(
            summary=verdict.summary,
            root_cause=verdict.root_cause,
            affected_components=verdict.affected_components,
            suggested_fixes=fixes,
            unit_tests=tests,
            confidence=verdict.confidence,
            reasoning=verdict.reasoning,
            code_analysis=code_analysis,
        )


def build_request(
    narrative: str,
    raw_log_lines: Iterable[str] | None = None,
    *,
    flags: FeatureFlags | None = None,
) -> AnalysisRequest:
    """Classify and aggregate raw lines into an AnalysisRequest."""
    if not narrative or not narrative.strip():
        raise InvalidRequestError("An incident description is required.")

    batch = None
    if raw_log_lines is not None:
        records = classify_lines(raw_log_lines)
        if records:
            batch = summarize_records(records)
    return AnalysisRequest(narrative=narrative, batch=batch, flags=flags or FeatureFlags())


async def analyze_incident(
    narrative: str,
    raw_log_lines: Iterable[str] | None = None,
    *,
    oracle: Oracle,
    federation: RepositoryFederation | None = None,
    flags: FeatureFlags | None = None,
    cfg: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Public entry point: raw evidence in, assembled analysis out."""
    request = build_request(narrative, raw_log_lines, flags=flags)
    analyzer = IncidentAnalyzer(oracle, federation, cfg=cfg)
    return await analyzer.analyze(request)
