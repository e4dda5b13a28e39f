"""Repository tool implementations."""

from __future__ import annotations

from typing import Any

from incident_rca.core.repositories import (
    CodeSearchHit,
    RepositoryFederation,
    RepositoryHandle,
    RepositoryNotConnectedError,
    UnknownRepositoryError,
)
from incident_rca.core.repositories.sessions import session_config

DEFAULT_SEARCH_LIMIT = 50
HARD_SEARCH_LIMIT = 500


def _handle_to_dict(handle: RepositoryHandle) -> dict[str, Any]:
    return {
        "id": handle.id,
        "name": handle.name,
        "kind": handle.kind.value,
        "state": handle.state.value,
        "config": session_config(handle),
    }


def _hit_to_dict(hit: CodeSearchHit) -> dict[str, Any]:
    return {
        "path": hit.path,
        "content": hit.content,
        "repository": hit.repository,
        "line_number": hit.line_number,
        "origin_backend": hit.origin_backend,
    }


def _check_known(federation: RepositoryFederation, repository_id: str) -> None:
    try:
        federation.get(repository_id)
    except UnknownRepositoryError as e:
        valid = ", ".join(h.id for h in federation.list_all())
        raise ValueError(f"Unknown repository '{repository_id}'. Valid values: {valid}.") from e


def list_repositories_impl(
    federation: RepositoryFederation,
    *,
    connected_only: bool = False,
) -> dict[str, Any]:
    handles = federation.list_connected() if connected_only else federation.list_all()
    return {"repositories": [_handle_to_dict(h) for h in handles]}


async def connect_repository_impl(
    federation: RepositoryFederation,
    repository_id: str,
) -> dict[str, Any]:
    _check_known(federation, repository_id)
    ok = await federation.connect(repository_id)
    return {"id": repository_id, "connected": ok}


async def disconnect_repository_impl(
    federation: RepositoryFederation,
    repository_id: str,
) -> dict[str, Any]:
    _check_known(federation, repository_id)
    await federation.disconnect(repository_id)
    return {"id": repository_id, "connected": False}


async def search_code_impl(
    federation: RepositoryFederation,
    query: str,
    *,
    repository_id: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Search one repository, or fan out to every connected one."""
    if not query.strip():
        raise ValueError("query must not be empty")
    if limit is None:
        limit = DEFAULT_SEARCH_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    limit = min(limit, HARD_SEARCH_LIMIT)

    if repository_id is not None:
        _check_known(federation, repository_id)
        try:
            hits = await federation.search(query, repository_id)
        except RepositoryNotConnectedError as e:
            raise ValueError(str(e)) from e
        failures: dict[str, str] = {}
    else:
        res = await federation.search_detailed(query)
        hits, failures = res.hits, res.failures

    return {
        "count": min(len(hits), limit),
        "hits": [_hit_to_dict(h) for h in hits[:limit]],
        "failures": failures,
    }
