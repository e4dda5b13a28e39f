from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from incident_rca.core.repositories import (
    BackendAuthError,
    BackendRequestError,
    CodeIndexSession,
    GitHubSession,
    GitLabSession,
    RepositoryError,
    RepositorySettings,
    create_session,
    default_handles,
)
from incident_rca.core.repositories.sessions import session_config


def _handles(**kw):
    return {h.id: h for h in default_handles(RepositorySettings(**kw))}


def _github_handler(request: httpx.Request) -> httpx.Response:
    assert request.headers["Authorization"] == "token gh-token"
    if request.url.path == "/user":
        return httpx.Response(200, json={"login": "octo"})
    if request.url.path == "/search/code":
        assert request.url.params["q"] == "timeout"
        assert "text-match" in request.headers["Accept"]
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "path": "src/db/pool.ts",
                        "repository": {"full_name": "acme/api"},
                        "text_matches": [{"fragment": "const timeout = 5"}],
                    },
                    {"path": "README.md", "repository": {"full_name": "acme/api"}},
                    {"name": "no path"},
                ]
            },
        )
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_github_session_search() -> None:
    handle = _handles(github_token="gh-token")["github"]
    session = create_session(handle, transport=httpx.MockTransport(_github_handler))
    assert isinstance(session, GitHubSession)

    await session.connect()
    try:
        hits = await session.search_code("timeout")
    finally:
        await session.disconnect()

    assert [(h.path, h.content, h.repository) for h in hits] == [
        ("src/db/pool.ts", "const timeout = 5", "acme/api"),
        ("README.md", "", "acme/api"),
    ]
    assert {h.origin_backend for h in hits} == {"github"}


@pytest.mark.asyncio
async def test_github_connect_rejected_credentials() -> None:
    handle = _handles()["github"]
    transport = httpx.MockTransport(lambda request: httpx.Response(401))
    session = create_session(handle, transport=transport)

    with pytest.raises(BackendAuthError):
        await session.connect()


@pytest.mark.asyncio
async def test_github_search_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/user":
            return httpx.Response(200, json={})
        return httpx.Response(502)

    session = create_session(_handles()["github"], transport=httpx.MockTransport(handler))
    await session.connect()
    with pytest.raises(BackendRequestError):
        await session.search_code("x")
    await session.disconnect()


@pytest.mark.asyncio
async def test_gitlab_session_blob_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer gl-token"
        if request.url.path == "/api/v4/user":
            return httpx.Response(200, json={"id": 1})
        if request.url.path == "/api/v4/search":
            assert request.url.params["scope"] == "blobs"
            assert request.url.params["search"] == "pool"
            return httpx.Response(
                200,
                json=[
                    {"path": "app/pool.py", "data": "pool = Pool()", "project_id": 7, "startline": 12},
                    {"filename": "lib/x.rb", "data": "pool"},
                ],
            )
        return httpx.Response(404)

    handle = _handles(gitlab_token="gl-token", gitlab_api_url="https://gitlab.example/api/v4")[
        "gitlab"
    ]
    session = create_session(handle, transport=httpx.MockTransport(handler))
    assert isinstance(session, GitLabSession)

    await session.connect()
    hits = await session.search_code("pool")
    info = await session.repository_info()
    await session.disconnect()

    assert hits[0].path == "app/pool.py"
    assert hits[0].repository == "7"
    assert hits[0].line_number == 12
    assert hits[1].path == "lib/x.rb"
    assert hits[1].repository is None
    assert info.name == "GitLab Repository"


@pytest.mark.asyncio
async def test_hosted_session_unsupported_capabilities_are_empty() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    session = create_session(_handles()["github"], transport=transport)
    await session.connect()
    assert await session.list_files() == []
    assert await session.read_file("a.py") == ""
    await session.disconnect()


@pytest.mark.asyncio
async def test_search_before_connect_fails() -> None:
    session = create_session(_handles()["gitlab"])
    with pytest.raises(RepositoryError):
        await session.search_code("x")


def _make_tree(root: Path) -> None:
    (root / "src").mkdir()
    (root / "src" / "pool.py").write_text("import db\n\nPOOL_TIMEOUT = 5\n", encoding="utf-8")
    (root / "src" / "client.ts").write_text("export const timeout = 5;\n", encoding="utf-8")
    (root / "notes.txt").write_text("timeout notes\n", encoding="utf-8")
    (root / ".git").mkdir()
    (root / ".git" / "hook.py").write_text("timeout\n", encoding="utf-8")


@pytest.mark.asyncio
async def test_code_index_session(tmp_path: Path) -> None:
    _make_tree(tmp_path)
    handle = _handles(code_index_path=str(tmp_path), code_index_languages=("python", "typescript"))[
        "code-index"
    ]
    session = create_session(handle)
    assert isinstance(session, CodeIndexSession)

    await session.connect()
    hits = await session.search_code("TIMEOUT")
    files = await session.list_files()
    content = await session.read_file("src/pool.py")
    info = await session.repository_info()

    assert [(h.path, h.line_number) for h in hits] == [("src/client.ts", 1), ("src/pool.py", 3)]
    assert files == ["src/client.ts", "src/pool.py"]
    assert "POOL_TIMEOUT" in content
    assert info.language == "python, typescript"

    with pytest.raises(ValueError):
        await session.read_file("../outside.py")


@pytest.mark.asyncio
async def test_code_index_missing_root(tmp_path: Path) -> None:
    session = create_session(_handles(code_index_path=str(tmp_path / "missing"))["code-index"])
    with pytest.raises(RepositoryError):
        await session.connect()


def test_session_config_masks_token() -> None:
    handles = _handles(github_token="secret")
    assert session_config(handles["github"])["token"] == "***"
    assert session_config(_handles()["gitlab"])["token"] == ""
