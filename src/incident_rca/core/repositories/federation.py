"""Registry of repository backends with concurrent fan-out search."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from .errors import (
    BackendAuthError,
    RepositoryNotConnectedError,
    UnknownRepositoryError,
)
from .models import (
    CodeSearchHit,
    ConnectionState,
    FederatedSearch,
    RepositoryHandle,
    RepositoryInfo,
)
from .sessions import RepositorySession, create_session
from .settings import RepositorySettings, default_handles

logger = logging.getLogger(__name__)

SessionFactory = Callable[[RepositoryHandle], RepositorySession]


class RepositoryFederation:
    """Owns the repository registry and the live session of each handle.

    Connection state is authoritative here; connect/disconnect are serialized
    per handle id. Fan-out search isolates failures per backend.
    """

    def __init__(
        self,
        handles: Iterable[RepositoryHandle],
        *,
        session_factory: SessionFactory | None = None,
        connect_timeout_s: float = 30.0,
        search_timeout_s: float = 30.0,
    ) -> None:
        self._handles: dict[str, RepositoryHandle] = {}
        for h in handles:
            if h.id in self._handles:
                raise ValueError(f"Duplicate repository id: {h.id}")
            self._handles[h.id] = replace(h, state=ConnectionState.DISCONNECTED)

        self._sessions: dict[str, RepositorySession] = {}
        self._locks: dict[str, asyncio.Lock] = {hid: asyncio.Lock() for hid in self._handles}
        self._session_factory = session_factory or (
            lambda handle: create_session(handle, timeout=search_timeout_s)
        )
        self.connect_timeout_s = connect_timeout_s
        self.search_timeout_s = search_timeout_s

    @classmethod
    def from_settings(cls, settings: RepositorySettings) -> RepositoryFederation:
        """Federation with the three default (disconnected) backends."""
        return cls(
            default_handles(settings),
            connect_timeout_s=settings.backend_timeout_s,
            search_timeout_s=settings.backend_timeout_s,
        )

    def _handle(self, repository_id: str) -> RepositoryHandle:
        try:
            return self._handles[repository_id]
        except KeyError:
            raise UnknownRepositoryError(repository_id) from None

    def _set_state(self, repository_id: str, state: ConnectionState) -> None:
        self._handles[repository_id] = replace(self._handles[repository_id], state=state)

    def _session(self, repository_id: str) -> RepositorySession:
        self._handle(repository_id)
        session = self._sessions.get(repository_id)
        if session is None:
            raise RepositoryNotConnectedError(f"Repository {repository_id} is not connected")
        return session

    async def connect(self, repository_id: str) -> bool:
        """Open a session and verify it; True when the handle is connected."""
        handle = self._handle(repository_id)
        async with self._locks[repository_id]:
            if repository_id in self._sessions:
                return True

            session = self._session_factory(handle)
            try:
                await asyncio.wait_for(session.connect(), timeout=self.connect_timeout_s)
            except Exception as e:
                reason = str(e) or type(e).__name__
                logger.warning("Failed to connect to %s: %s", repository_id, reason)
                return False

            self._sessions[repository_id] = session
            self._set_state(repository_id, ConnectionState.CONNECTED)
            logger.info("Connected repository %s (%s)", repository_id, handle.kind.value)
            return True

    async def disconnect(self, repository_id: str) -> None:
        """Tear down the session of a handle; no-op when not connected."""
        self._handle(repository_id)
        async with self._locks[repository_id]:
            await self._drop_session(repository_id)

    async def _drop_session(self, repository_id: str) -> None:
        session = self._sessions.pop(repository_id, None)
        self._set_state(repository_id, ConnectionState.DISCONNECTED)
        if session is None:
            return
        try:
            await session.disconnect()
        except Exception as e:
            logger.warning("Error while disconnecting %s: %s", repository_id, e)

    async def close(self) -> None:
        """Disconnect every connected backend."""
        for repository_id in list(self._sessions):
            await self.disconnect(repository_id)

    async def _search_one(self, repository_id: str, query: str) -> list[CodeSearchHit]:
        session = self._sessions[repository_id]
        try:
            return await asyncio.wait_for(
                session.search_code(query), timeout=self.search_timeout_s
            )
        except BackendAuthError:
            # Credentials no longer valid: the session is unusable.
            async with self._locks[repository_id]:
                if self._sessions.get(repository_id) is session:
                    await self._drop_session(repository_id)
            raise

    async def search(self, query: str, repository_id: str | None = None) -> list[CodeSearchHit]:
        """Search one connected backend, or every connected backend."""
        if repository_id is not None:
            self._session(repository_id)
            hits = await self._search_one(repository_id, query)
            return [replace(h, origin_backend=repository_id) for h in hits]
        return (await self.search_detailed(query)).hits

    async def search_detailed(self, query: str) -> FederatedSearch:
        """Fan a query out to every connected backend.

        Failed backends contribute no hits; their errors are reported in
        ``failures`` keyed by repository id.
        """
        ids = tuple(self._sessions)
        if not ids:
            return FederatedSearch(hits=[], failures={}, backends=())

        results = await asyncio.gather(
            *(self._search_one(rid, query) for rid in ids),
            return_exceptions=True,
        )

        hits: list[CodeSearchHit] = []
        failures: dict[str, str] = {}
        for rid, res in zip(ids, results):
            if isinstance(res, BaseException):
                if isinstance(res, asyncio.CancelledError):
                    raise res
                msg = str(res) or type(res).__name__
                logger.warning("Search in %s failed: %s", rid, msg)
                failures[rid] = msg
                continue
            hits.extend(replace(h, origin_backend=rid) for h in res)

        return FederatedSearch(hits=hits, failures=failures, backends=ids)

    async def list_files(self, repository_id: str, path: str = "") -> list[str]:
        return await self._session(repository_id).list_files(path)

    async def read_file(self, repository_id: str, path: str) -> str:
        return await self._session(repository_id).read_file(path)

    async def repository_info(self, repository_id: str) -> RepositoryInfo:
        return await self._session(repository_id).repository_info()

    def get(self, repository_id: str) -> RepositoryHandle:
        return self._handle(repository_id)

    def list_all(self) -> tuple[RepositoryHandle, ...]:
        return tuple(self._handles.values())

    def list_connected(self) -> tuple[RepositoryHandle, ...]:
        return tuple(h for h in self._handles.values() if h.is_connected)
