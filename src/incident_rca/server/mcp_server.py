"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: incident analysis and repository federation actions
- Resources: the repository registry via URI
- Prompts: an incident investigation workflow template

Run locally (stdio):
    python -m incident_rca.server.mcp_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from incident_rca.core.repositories import RepositoryFederation, RepositorySettings
from incident_rca.prompts.registry import register_prompts
from incident_rca.resources.registry import register_resources
from incident_rca.tools.analyze import analyze_incident_impl
from incident_rca.tools.repositories import (
    connect_repository_impl,
    disconnect_repository_impl,
    list_repositories_impl,
    search_code_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure logging on stderr; stdout carries the MCP protocol."""
    level_name = os.getenv("INCIDENT_RCA_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


mcp = FastMCP("incident-rca", json_response=True)

# Process-wide registry; connection state persists across tool calls.
federation = RepositoryFederation.from_settings(RepositorySettings.from_env())

register_resources(mcp, federation)
register_prompts(mcp)


@mcp.tool()
async def analyze_incident(
    narrative: str,
    log_lines: Sequence[str] | None = None,
    log_paths: Sequence[str] | None = None,
    include_fixes: bool = True,
    include_tests: bool = True,
    include_code_search: bool = True,
) -> dict[str, Any]:
    """Run a root-cause analysis for an incident.

    Parameters
    ----------
    narrative:
        Free-text description of what users or operators observed.
    log_lines:
        Raw log lines. Bracketed, JSON, nginx, apache and ISO-timestamped
        application formats are recognized; other lines are ignored.
    log_paths:
        Paths to local log files (plain text or .gz), read before log_lines.
    include_fixes/include_tests/include_code_search:
        Toggle the optional phases. Code search only runs against
        repositories connected with connect_repository.

    Returns
    -------
    dict:
        The analysis result plus a "log_summary" of the parsed evidence.
    """
    return await analyze_incident_impl(
        narrative=narrative,
        log_lines=log_lines,
        log_paths=log_paths,
        include_fixes=include_fixes,
        include_tests=include_tests,
        include_code_search=include_code_search,
        federation=federation,
    )


@mcp.tool()
def list_repositories(connected_only: bool = False) -> dict[str, Any]:
    """List registered repository backends and their connection state."""
    return list_repositories_impl(federation, connected_only=connected_only)


@mcp.tool()
async def connect_repository(repository_id: str) -> dict[str, Any]:
    """Connect a repository backend ("github", "gitlab" or "code-index")."""
    return await connect_repository_impl(federation, repository_id)


@mcp.tool()
async def disconnect_repository(repository_id: str) -> dict[str, Any]:
    """Disconnect a repository backend. Disconnecting twice is harmless."""
    return await disconnect_repository_impl(federation, repository_id)


@mcp.tool()
async def search_code(
    query: str,
    repository_id: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Search code in one connected repository, or in all of them.

    Returns
    -------
    dict:
        {"count": int, "hits": list[dict], "failures": dict[str, str]}
    """
    return await search_code_impl(
        federation, query, repository_id=repository_id, limit=limit
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
