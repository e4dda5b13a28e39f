"""Repository search federation package."""

from __future__ import annotations

from .errors import (
    BackendAuthError,
    BackendRequestError,
    RepositoryError,
    RepositoryNotConnectedError,
    UnknownRepositoryError,
)
from .federation import RepositoryFederation
from .models import (
    BackendKind,
    CodeSearchHit,
    ConnectionState,
    FederatedSearch,
    RepositoryHandle,
    RepositoryInfo,
)
from .sessions import (
    CodeIndexSession,
    GitHubSession,
    GitLabSession,
    RepositorySession,
    create_session,
)
from .settings import RepositorySettings, default_handles

__all__ = [
    "BackendAuthError",
    "BackendKind",
    "BackendRequestError",
    "CodeIndexSession",
    "CodeSearchHit",
    "ConnectionState",
    "FederatedSearch",
    "GitHubSession",
    "GitLabSession",
    "RepositoryError",
    "RepositoryFederation",
    "RepositoryHandle",
    "RepositoryInfo",
    "RepositoryNotConnectedError",
    "RepositorySession",
    "RepositorySettings",
    "UnknownRepositoryError",
    "create_session",
    "default_handles",
]
