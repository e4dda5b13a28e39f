"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from incident_rca.core.analysis import AnalysisResult
from incident_rca.core.repositories import RepositoryFederation
from incident_rca.tools.repositories import list_repositories_impl

SAMPLE_LOG = (
    "[2024-01-15T10:30:00Z] ERROR: Database connection failed\n"
    "[2024-01-15T10:30:05Z] WARN: Retrying request\n"
    '{"timestamp":"2024-01-15T10:30:07Z","level":"error","message":"Upstream timeout",'
    '"service":"api"}\n'
    "2024/01/15 10:30:09 [error] 123#0: *1 connect() failed (111: Connection refused)\n"
    "2024-01-15 10:30:11 ERROR Payment worker out of memory\n"
)


def register_resources(mcp: FastMCP, federation: RepositoryFederation) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://incident-rca/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://incident-rca/help\n"
            "- app://incident-rca/examples/sample-log\n"
            "- app://incident-rca/schemas/analysis-result\n"
            "- repositories://all\n"
            "- repositories://connected\n"
        )

    @mcp.resource("app://incident-rca/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny mixed-format log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://incident-rca/schemas/analysis-result")
    def analysis_result_schema() -> dict[str, Any]:
        """Return the JSON schema of analysis results."""
        return AnalysisResult.model_json_schema()

    @mcp.resource("repositories://all")
    def all_repositories() -> dict[str, Any]:
        """Return every registered repository backend."""
        return list_repositories_impl(federation)

    @mcp.resource("repositories://connected")
    def connected_repositories() -> dict[str, Any]:
        """Return the connected repository backends."""
        return list_repositories_impl(federation, connected_only=True)
