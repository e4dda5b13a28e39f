"""Repository backend configuration.

Settings are resolved from the environment once, by the entrypoint, and then
passed explicitly into the federation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType

from .models import BackendKind, RepositoryHandle

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITLAB_API_URL = "https://gitlab.com/api/v4"
DEFAULT_CODE_INDEX_PATH = "/tmp/code-index"
DEFAULT_CODE_INDEX_LANGUAGES = ("typescript", "javascript", "python")
DEFAULT_BACKEND_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class RepositorySettings:
    github_token: str = ""
    gitlab_token: str = ""
    github_api_url: str = DEFAULT_GITHUB_API_URL
    gitlab_api_url: str = DEFAULT_GITLAB_API_URL
    code_index_path: str = DEFAULT_CODE_INDEX_PATH
    code_index_languages: tuple[str, ...] = DEFAULT_CODE_INDEX_LANGUAGES
    backend_timeout_s: float = DEFAULT_BACKEND_TIMEOUT_S

    @classmethod
    def from_env(cls) -> RepositorySettings:
        """Read settings from the environment.

        A missing token becomes an empty string; the backend handshake then
        fails with 401 instead of failing here.
        """
        languages_env = os.getenv("CODE_INDEX_LANGUAGES")
        languages = (
            tuple(s.strip().lower() for s in languages_env.split(",") if s.strip())
            if languages_env
            else DEFAULT_CODE_INDEX_LANGUAGES
        )

        timeout = DEFAULT_BACKEND_TIMEOUT_S
        env = os.getenv("INCIDENT_RCA_BACKEND_TIMEOUT")
        if env:
            try:
                timeout = float(env)
            except ValueError as exc:
                raise ValueError("INCIDENT_RCA_BACKEND_TIMEOUT must be a number") from exc
            if timeout <= 0:
                raise ValueError("INCIDENT_RCA_BACKEND_TIMEOUT must be > 0")

        return cls(
            github_token=os.getenv("GITHUB_TOKEN", ""),
            gitlab_token=os.getenv("GITLAB_TOKEN", ""),
            github_api_url=os.getenv("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL,
            gitlab_api_url=os.getenv("GITLAB_API_URL") or DEFAULT_GITLAB_API_URL,
            code_index_path=os.getenv("CODE_INDEX_PATH") or DEFAULT_CODE_INDEX_PATH,
            code_index_languages=languages,
            backend_timeout_s=timeout,
        )


def default_handles(settings: RepositorySettings) -> list[RepositoryHandle]:
    """Build the default (disconnected) registry entries."""
    return [
        RepositoryHandle(
            id="github",
            name="GitHub",
            kind=BackendKind.GITHUB,
            config=MappingProxyType(
                {"token": settings.github_token, "base_url": settings.github_api_url}
            ),
        ),
        RepositoryHandle(
            id="gitlab",
            name="GitLab",
            kind=BackendKind.GITLAB,
            config=MappingProxyType(
                {"token": settings.gitlab_token, "base_url": settings.gitlab_api_url}
            ),
        ),
        RepositoryHandle(
            id="code-index",
            name="Code Index",
            kind=BackendKind.CODE_INDEX,
            config=MappingProxyType(
                {
                    "index_path": settings.code_index_path,
                    "languages": settings.code_index_languages,
                }
            ),
        ),
    ]
