from __future__ import annotations

import pytest

from incident_rca.core.analysis import (
    PARSE_FAILED_ROOT_CAUSE,
    Fix,
    find_balanced,
    parse_fixes,
    parse_test_case,
    parse_verdict,
)
from incident_rca.core.analysis.extraction import (
    DEFAULT_ROOT_CAUSE,
    default_framework,
    default_test_path,
)


def _fix(**kw) -> Fix:
    data = {
        "id": "fix-1",
        "description": "Add retry",
        "priority": "high",
        "kind": "code",
        "code": "retry()",
        "file_path": "src/db/pool.ts",
        "explanation": "x",
    }
    data.update(kw)
    return Fix(**data)


def test_find_balanced_ignores_brackets_in_strings() -> None:
    text = 'Sure! {"a": "}{", "b": {"c": [1]}} trailing {"x": 1}'
    assert find_balanced(text) == '{"a": "}{", "b": {"c": [1]}}'
    assert find_balanced('see [1, "]", [2]] ok', "[", "]") == '[1, "]", [2]]'
    assert find_balanced("no json here") is None
    assert find_balanced('{"open": true') is None


def test_parse_verdict_from_prose() -> None:
    text = (
        "Here is my analysis:\n"
        '{"summary": "s", "rootCause": "Pool exhausted", "affectedComponents": ["db", 3], '
        '"confidence": 0.9, "reasoning": "because"}\nHope this helps.'
    )
    verdict = parse_verdict(text)
    assert verdict.root_cause == "Pool exhausted"
    assert verdict.summary == "s"
    assert verdict.affected_components == ["db"]
    assert verdict.confidence == 0.9
    assert verdict.reasoning == "because"


def test_parse_verdict_accepts_snake_case_and_defaults() -> None:
    verdict = parse_verdict('{"root_cause": "Disk full"}')
    assert verdict.root_cause == "Disk full"
    assert verdict.confidence == 0.5
    assert verdict.reasoning == "Analysis completed"
    assert verdict.affected_components == []

    assert parse_verdict("{}").root_cause == DEFAULT_ROOT_CAUSE


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("85", 0.85), ("1.7", 0.017), ("-2", 0.0), ("250", 1.0), ("true", 0.5), ('"high"', 0.5)],
)
def test_parse_verdict_confidence_clamped(raw: str, expected: float) -> None:
    verdict = parse_verdict(f'{{"rootCause": "r", "confidence": {raw}}}')
    assert verdict.confidence == pytest.approx(expected)
    assert 0.0 <= verdict.confidence <= 1.0


def test_parse_verdict_degrades_on_garbage() -> None:
    text = "I could not decide, sorry."
    verdict = parse_verdict(text)
    assert verdict.root_cause == PARSE_FAILED_ROOT_CAUSE
    assert verdict.reasoning == text
    assert verdict.confidence == 0.3


def test_parse_verdict_degrades_on_broken_json() -> None:
    verdict = parse_verdict('{"rootCause": oops}')
    assert verdict.root_cause == PARSE_FAILED_ROOT_CAUSE


def test_parse_fixes_normalizes_items() -> None:
    text = (
        "Fixes:\n["
        '{"description": "A", "priority": "URGENT", "type": "configuration", "filePath": "a.yml"},'
        '"junk",'
        '{"description": "B", "priority": "Low", "type": "magic", "code": "x()"}'
        "]"
    )
    fixes = parse_fixes(text)
    assert [f.id for f in fixes] == ["fix-0", "fix-1"]
    assert fixes[0].priority == "medium"
    assert fixes[0].kind == "configuration"
    assert fixes[0].file_path == "a.yml"
    assert fixes[1].priority == "low"
    assert fixes[1].kind == "code"
    assert fixes[1].code == "x()"


def test_parse_fixes_caps_count() -> None:
    items = ",".join(f'{{"description": "d{i}"}}' for i in range(8))
    fixes = parse_fixes(f"[{items}]", max_fixes=5)
    assert [f.id for f in fixes] == [f"fix-{i}" for i in range(5)]


@pytest.mark.parametrize("text", ["no fixes", "[]", '["a", 1]', '[{"broken": }]'])
def test_parse_fixes_falls_back(text: str) -> None:
    fixes = parse_fixes(text)
    assert len(fixes) == 1
    assert fixes[0].id == "fix-1"
    assert fixes[0].priority == "high"
    assert fixes[0].kind == "code"


def test_parse_test_case_links_fix() -> None:
    test = parse_test_case('{"description": "d", "code": "it()", "framework": "mocha"}', _fix())
    assert test is not None
    assert test.id == "test-fix-1"
    assert test.fix_id == "fix-1"
    assert test.framework == "mocha"
    assert test.file_path == "src/db/pool.test.ts"


def test_parse_test_case_defaults_for_python() -> None:
    test = parse_test_case("{}", _fix(file_path="app/db.py"))
    assert test is not None
    assert test.framework == "pytest"
    assert test.file_path == "app/test_db.py"
    assert test.code.startswith("#")


def test_parse_test_case_none_on_garbage() -> None:
    assert parse_test_case("nope", _fix()) is None


@pytest.mark.parametrize(
    ("path", "test_path", "framework"),
    [
        ("src/db/pool.ts", "src/db/pool.test.ts", "jest"),
        ("app/db.py", "app/test_db.py", "pytest"),
        ("cmd/main.go", "cmd/main_test.go", "go test"),
        ("Makefile", "Makefile.test", "jest"),
    ],
)
def test_default_test_path_and_framework(path: str, test_path: str, framework: str) -> None:
    assert default_test_path(path) == test_path
    assert default_framework(path) == framework


def _deeply_nested(prefix: str, suffix: str, depth: int = 100_000) -> str:
    return prefix + "[" * depth + "]" * depth + suffix


def test_deeply_nested_responses_degrade() -> None:
    verdict = parse_verdict(_deeply_nested('{"rootCause": "x", "a": ', "}"))
    assert verdict.root_cause == PARSE_FAILED_ROOT_CAUSE
    assert verdict.confidence == 0.3

    fixes = parse_fixes(_deeply_nested("", ""))
    assert [(f.id, f.priority, f.kind) for f in fixes] == [("fix-1", "high", "code")]

    assert parse_test_case(_deeply_nested('{"code": ', "}"), _fix()) is None


def test_wire_values_of_wrong_type_use_defaults() -> None:
    verdict = parse_verdict(
        '{"summary": 5, "rootCause": "  ", "affectedComponents": "db", "reasoning": null}'
    )
    assert verdict.summary is None
    assert verdict.root_cause == DEFAULT_ROOT_CAUSE
    assert verdict.affected_components == []
    assert verdict.reasoning == "Analysis completed"

    fix = parse_fixes('[{"description": ["x"], "kind": "Infrastructure", "code": 3}]')[0]
    assert fix.id == "fix-0"
    assert fix.description == "Generated fix"
    assert fix.kind == "infrastructure"
    assert fix.code is None
