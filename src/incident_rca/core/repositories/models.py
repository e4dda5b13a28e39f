"""Repository registry models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class BackendKind(str, Enum):
    """Supported repository backend families."""

    GITHUB = "github"
    GITLAB = "gitlab"
    CODE_INDEX = "code-index"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    """A named backend connection in the federation registry."""

    id: str
    name: str
    kind: BackendKind
    config: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    state: ConnectionState = ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


@dataclass(frozen=True, slots=True)
class CodeSearchHit:
    """One code search match returned by a backend."""

    path: str
    content: str
    origin_backend: str
    repository: str | None = None
    line_number: int | None = None


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    name: str
    url: str
    description: str | None = None
    language: str | None = None


@dataclass(frozen=True, slots=True)
class FederatedSearch:
    """Merged fan-out results plus per-backend failure diagnostics."""

    hits: list[CodeSearchHit]
    failures: dict[str, str]
    backends: tuple[str, ...]
