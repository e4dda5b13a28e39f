"""Repository backend errors."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for repository backend failures."""


class UnknownRepositoryError(RepositoryError, KeyError):
    """No repository handle is registered under the given id."""

    def __str__(self) -> str:
        return f"Unknown repository: {self.args[0]}" if self.args else "Unknown repository"


class RepositoryNotConnectedError(RepositoryError):
    """The repository exists but has no live session."""


class BackendAuthError(RepositoryError):
    """The backend rejected the configured credentials (HTTP 401/403)."""


class BackendRequestError(RepositoryError):
    """The backend answered with an unexpected status or payload."""
