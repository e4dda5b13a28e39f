from __future__ import annotations

from pathlib import Path

import pytest

from incident_rca.core.errors import InvalidRequestError
from incident_rca.tools.analyze import analyze_incident_impl


@pytest.mark.asyncio
async def test_analyze_incident_impl_from_file_and_lines(
    tmp_path: Path, write_log, make_oracle
) -> None:
    log = tmp_path / "app.log"
    write_log(log)

    out = await analyze_incident_impl(
        narrative="users getting 500 errors",
        log_paths=[str(log)],
        log_lines=["2024/01/15 10:31:00 [error] upstream timed out"],
        include_tests=False,
        oracle=make_oracle(),
    )

    summary = out["log_summary"]
    assert summary["total_count"] == 3
    assert summary["error_count"] == 2
    assert summary["warn_count"] == 1
    assert summary["sources"] == ["api", "application", "nginx"]
    assert summary["patterns"] == ["connection", "timeout"]
    assert summary["time_span"] == {
        "start": "2024-01-15T10:30:00+00:00",
        "end": "2024-01-15T10:31:00+00:00",
    }

    assert out["root_cause"] == "Database connection pool exhausted"
    assert out["suggested_fixes"][0]["id"] == "fix-0"
    assert out["unit_tests"] == []
    assert out["code_analysis"]["potential_issues"]


@pytest.mark.asyncio
async def test_analyze_incident_impl_narrative_only(make_oracle) -> None:
    out = await analyze_incident_impl(narrative="checkout is slow", oracle=make_oracle())
    assert out["log_summary"] is None
    assert out["code_analysis"] is None
    assert [t["fix_id"] for t in out["unit_tests"]] == ["fix-0", "fix-1"]


@pytest.mark.asyncio
async def test_analyze_incident_impl_rejects_blank_narrative(make_oracle) -> None:
    with pytest.raises(InvalidRequestError):
        await analyze_incident_impl(narrative="  ", oracle=make_oracle())


@pytest.mark.asyncio
async def test_analyze_incident_impl_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(InvalidRequestError, match="GEMINI_API_KEY"):
        await analyze_incident_impl(narrative="x")


@pytest.mark.asyncio
async def test_analyze_incident_impl_missing_file(tmp_path: Path, make_oracle) -> None:
    with pytest.raises(FileNotFoundError):
        await analyze_incident_impl(
            narrative="x", log_paths=[str(tmp_path / "nope.log")], oracle=make_oracle()
        )
