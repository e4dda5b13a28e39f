from __future__ import annotations

from pathlib import Path

import pytest

from incident_rca.core.repositories import RepositoryFederation, RepositorySettings
from incident_rca.tools.repositories import (
    connect_repository_impl,
    disconnect_repository_impl,
    list_repositories_impl,
    search_code_impl,
)


def _federation(index: Path) -> RepositoryFederation:
    return RepositoryFederation.from_settings(
        RepositorySettings(
            github_token="secret",
            code_index_path=str(index),
            code_index_languages=("python",),
        )
    )


def _write_index(root: Path) -> None:
    for i in range(3):
        (root / f"mod{i}.py").write_text(f"def handler{i}():\n    raise Timeout()\n", encoding="utf-8")


def test_list_repositories_masks_tokens(tmp_path: Path) -> None:
    out = list_repositories_impl(_federation(tmp_path))
    repos = {r["id"]: r for r in out["repositories"]}

    assert set(repos) == {"github", "gitlab", "code-index"}
    assert repos["github"]["config"]["token"] == "***"
    assert repos["code-index"]["kind"] == "code-index"
    assert all(r["state"] == "disconnected" for r in repos.values())
    assert list_repositories_impl(_federation(tmp_path), connected_only=True) == {
        "repositories": []
    }


@pytest.mark.asyncio
async def test_connect_search_disconnect_code_index(tmp_path: Path) -> None:
    _write_index(tmp_path)
    fed = _federation(tmp_path)

    assert await connect_repository_impl(fed, "code-index") == {
        "id": "code-index",
        "connected": True,
    }
    connected = list_repositories_impl(fed, connected_only=True)["repositories"]
    assert [r["id"] for r in connected] == ["code-index"]

    out = await search_code_impl(fed, "timeout", limit=2)
    assert out["count"] == 2
    assert [h["path"] for h in out["hits"]] == ["mod0.py", "mod1.py"]
    assert out["hits"][0]["origin_backend"] == "code-index"
    assert out["hits"][0]["line_number"] == 2
    assert out["failures"] == {}

    single = await search_code_impl(fed, "handler2", repository_id="code-index")
    assert [h["path"] for h in single["hits"]] == ["mod2.py"]

    assert (await disconnect_repository_impl(fed, "code-index"))["connected"] is False
    assert (await search_code_impl(fed, "timeout"))["hits"] == []


@pytest.mark.asyncio
async def test_connect_missing_index_reports_false(tmp_path: Path) -> None:
    fed = _federation(tmp_path / "missing")
    out = await connect_repository_impl(fed, "code-index")
    assert out == {"id": "code-index", "connected": False}


@pytest.mark.asyncio
async def test_unknown_repository_id(tmp_path: Path) -> None:
    fed = _federation(tmp_path)
    with pytest.raises(ValueError, match="Unknown repository 'bitbucket'"):
        await connect_repository_impl(fed, "bitbucket")
    with pytest.raises(ValueError, match="Valid values"):
        await search_code_impl(fed, "x", repository_id="bitbucket")


@pytest.mark.asyncio
async def test_search_code_validation(tmp_path: Path) -> None:
    fed = _federation(tmp_path)
    with pytest.raises(ValueError):
        await search_code_impl(fed, "   ")
    with pytest.raises(ValueError):
        await search_code_impl(fed, "x", limit=0)
    with pytest.raises(ValueError, match="not connected"):
        await search_code_impl(fed, "x", repository_id="gitlab")
