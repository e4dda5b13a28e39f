"""Backend sessions.

Every backend implements the full RepositorySession capability set; the
capabilities a backend does not support return empty values so callers can
dispatch uniformly.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import aiofiles
import httpx

from .errors import BackendAuthError, BackendRequestError, RepositoryError
from .models import BackendKind, CodeSearchHit, RepositoryHandle, RepositoryInfo

logger = logging.getLogger(__name__)

LANGUAGE_EXTENSIONS: Mapping[str, tuple[str, ...]] = {
    "python": (".py",),
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".tsx"),
    "go": (".go",),
    "java": (".java",),
    "kotlin": (".kt",),
    "ruby": (".rb",),
    "rust": (".rs",),
    "php": (".php",),
    "csharp": (".cs",),
}


class RepositorySession(Protocol):
    """Capability set shared by all backend sessions."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def list_files(self, path: str = "") -> list[str]: ...

    async def read_file(self, path: str) -> str: ...

    async def search_code(self, query: str) -> list[CodeSearchHit]: ...

    async def repository_info(self) -> RepositoryInfo: ...


def _raise_for_status(resp: httpx.Response, *, backend: str) -> None:
    """Map HTTP failures onto repository errors."""
    if resp.status_code in (401, 403):
        raise BackendAuthError(f"{backend} rejected credentials (HTTP {resp.status_code})")
    if not resp.is_success:
        raise BackendRequestError(f"{backend} request failed (HTTP {resp.status_code})")


class _HostedGitSession:
    """Common client handling for REST-based hosted git backends."""

    default_base_url: str = ""
    display_name: str = ""

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.handle = handle
        self.token = str(handle.config.get("token") or "")
        self.base_url = str(handle.config.get("base_url") or self.default_base_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _auth_headers(self) -> dict[str, str]:
        """Credential headers for every request; each backend subclass provides them."""
        raise NotImplementedError

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RepositoryError(f"{self.handle.id} session is not connected")
        return self._client

    async def connect(self) -> None:
        """Open the HTTP client and verify credentials against /user."""
        client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._auth_headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            resp = await client.get("/user")
            _raise_for_status(resp, backend=self.display_name)
        except BaseException:
            await client.aclose()
            raise
        self._client = client

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def list_files(self, path: str = "") -> list[str]:
        logger.debug("%s list_files not supported (path=%r)", self.display_name, path)
        return []

    async def read_file(self, path: str) -> str:
        logger.debug("%s read_file not supported (path=%r)", self.display_name, path)
        return ""

    async def repository_info(self) -> RepositoryInfo:
        return RepositoryInfo(name=f"{self.display_name} Repository", url=self.base_url)


class GitHubSession(_HostedGitSession):
    """GitHub REST API session."""

    default_base_url = "https://api.github.com"
    display_name = "GitHub"

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github.v3+json",
        }

    async def search_code(self, query: str) -> list[CodeSearchHit]:
        client = self._require_client()
        resp = await client.get(
            "/search/code",
            params={"q": query},
            headers={"Accept": "application/vnd.github.v3.text-match+json"},
        )
        _raise_for_status(resp, backend=self.display_name)

        hits: list[CodeSearchHit] = []
        for item in resp.json().get("items") or []:
            if not isinstance(item, dict) or not item.get("path"):
                continue
            matches = item.get("text_matches") or [{}]
            fragment = matches[0].get("fragment") if isinstance(matches[0], dict) else None
            repo = item.get("repository") or {}
            hits.append(
                CodeSearchHit(
                    path=item["path"],
                    content=fragment or "",
                    origin_backend=self.handle.id,
                    repository=repo.get("full_name") if isinstance(repo, dict) else None,
                )
            )
        return hits


class GitLabSession(_HostedGitSession):
    """GitLab REST API session."""

    default_base_url = "https://gitlab.com/api/v4"
    display_name = "GitLab"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def search_code(self, query: str) -> list[CodeSearchHit]:
        client = self._require_client()
        resp = await client.get("/search", params={"scope": "blobs", "search": query})
        _raise_for_status(resp, backend=self.display_name)

        payload = resp.json()
        if not isinstance(payload, list):
            raise BackendRequestError("GitLab blob search returned an unexpected payload")

        hits: list[CodeSearchHit] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            path = item.get("path") or item.get("filename")
            if not path:
                continue
            project = item.get("project_id")
            line = item.get("startline")
            hits.append(
                CodeSearchHit(
                    path=str(path),
                    content=str(item.get("data") or ""),
                    origin_backend=self.handle.id,
                    repository=str(project) if project is not None else None,
                    line_number=line if isinstance(line, int) else None,
                )
            )
        return hits


class CodeIndexSession:
    """Local source tree search rooted at the configured index path."""

    def __init__(self, handle: RepositoryHandle, *, max_results: int = 50) -> None:
        self.handle = handle
        self.root = Path(str(handle.config.get("index_path") or "")).expanduser()
        languages: Sequence[str] = handle.config.get("languages") or ()
        self.extensions = frozenset(
            ext for lang in languages for ext in LANGUAGE_EXTENSIONS.get(str(lang).lower(), ())
        )
        self.max_results = max_results
        self._connected = False

    def _safe_resolve(self, path: str) -> Path:
        """Resolve a path under the index root."""
        base = self.root.resolve()
        p = (base / path).resolve()
        if base not in p.parents and p != base:
            raise ValueError("Path escapes index root")
        return p

    def _indexed_files(self, start: Path) -> list[Path]:
        out: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(start):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for name in sorted(filenames):
                p = Path(dirpath) / name
                if not self.extensions or p.suffix.lower() in self.extensions:
                    out.append(p)
        return out

    async def connect(self) -> None:
        if not await asyncio.to_thread(self.root.is_dir):
            raise RepositoryError(f"Code index not found: {self.root}")
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def list_files(self, path: str = "") -> list[str]:
        start = self._safe_resolve(path)
        if not start.is_dir():
            return []
        files = await asyncio.to_thread(self._indexed_files, start)
        base = self.root.resolve()
        return [str(p.relative_to(base)) for p in files]

    async def read_file(self, path: str) -> str:
        p = self._safe_resolve(path)
        if not p.is_file():
            return ""
        async with aiofiles.open(p, encoding="utf-8", errors="replace") as f:
            return await f.read()

    async def search_code(self, query: str) -> list[CodeSearchHit]:
        needle = query.lower()
        if not needle:
            return []

        base = self.root.resolve()
        hits: list[CodeSearchHit] = []
        for p in await asyncio.to_thread(self._indexed_files, base):
            async with aiofiles.open(p, encoding="utf-8", errors="replace") as f:
                line_no = 0
                async for line in f:
                    line_no += 1
                    if needle in line.lower():
                        hits.append(
                            CodeSearchHit(
                                path=str(p.relative_to(base)),
                                content=line.strip(),
                                origin_backend=self.handle.id,
                                repository=str(self.root),
                                line_number=line_no,
                            )
                        )
                        break
            if len(hits) >= self.max_results:
                break
        return hits

    async def repository_info(self) -> RepositoryInfo:
        languages = self.handle.config.get("languages") or ()
        return RepositoryInfo(
            name="Code Index",
            url=str(self.root),
            language=", ".join(languages) or None,
        )


def create_session(
    handle: RepositoryHandle,
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RepositorySession:
    """Build the session implementation for a handle's backend kind."""
    if handle.kind is BackendKind.GITHUB:
        return GitHubSession(handle, timeout=timeout, transport=transport)
    if handle.kind is BackendKind.GITLAB:
        return GitLabSession(handle, timeout=timeout, transport=transport)
    if handle.kind is BackendKind.CODE_INDEX:
        return CodeIndexSession(handle)
    raise RepositoryError(f"Unsupported backend kind: {handle.kind}")


def session_config(handle: RepositoryHandle) -> dict[str, Any]:
    """Handle config with credentials masked, for display."""
    return {
        k: ("***" if k == "token" and v else v)
        for k, v in handle.config.items()
    }
