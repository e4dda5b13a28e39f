from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

INCIDENT_LINES = [
    "[2024-01-15T10:30:00Z] ERROR: Database connection timeout",
    '{"timestamp":"2024-01-15T10:30:05Z","level":"warn","message":"Retrying request","service":"api"}',
    "not a log line",
]

VERDICT_JSON = (
    '{"summary": "DB pool exhausted", "rootCause": "Database connection pool exhausted", '
    '"affectedComponents": ["api", "database"], "confidence": 0.8, '
    '"reasoning": "Connection timeouts precede the 500s"}'
)

FIXES_JSON = (
    '[{"description": "Raise pool size", "priority": "high", "type": "configuration", '
    '"code": "POOL_SIZE=50", "filePath": "config/db.env", "explanation": "More headroom"}, '
    '{"description": "Add retry", "priority": "medium", "type": "code", '
    '"code": "retry(connect)", "filePath": "src/db/pool.ts", "explanation": "Transient errors"}, '
    '{"description": "Alert on saturation", "priority": "low", "type": "infrastructure", '
    '"explanation": "Earlier detection"}]'
)

TEST_JSON = (
    '{"description": "retries connect", "framework": "jest", '
    '"code": "test(\\"retries\\", () => {})", "filePath": "src/db/pool.test.ts"}'
)


class ScriptedOracle:
    """Oracle double answering by prompt kind; a value of None raises."""

    def __init__(
        self,
        *,
        verdict: str | None = VERDICT_JSON,
        fixes: str | None = FIXES_JSON,
        test: str | None = TEST_JSON,
    ) -> None:
        self.answers = {"verdict": verdict, "fixes": fixes, "test": test}
        self.prompts: list[str] = []

    def kind(self, prompt: str) -> str:
        if "unit test for this fix" in prompt:
            return "test"
        if "code fixes or configuration changes" in prompt:
            return "fixes"
        return "verdict"

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 4000,
        temperature: float = 0.1,
    ) -> str:
        self.prompts.append(prompt)
        answer = self.answers[self.kind(prompt)]
        if answer is None:
            raise RuntimeError("oracle unavailable")
        return answer


@pytest.fixture
def incident_lines() -> list[str]:
    return list(INCIDENT_LINES)


@pytest.fixture
def make_oracle() -> Callable[..., ScriptedOracle]:
    return ScriptedOracle


@pytest.fixture
def write_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(INCIDENT_LINES) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_bytes() -> Callable[[Path, list[bytes]], None]:
    def _write(path: Path, lines: list[bytes]) -> None:
        path.write_bytes(b"".join(line + b"\n" for line in lines))

    return _write
