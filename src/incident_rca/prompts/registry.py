"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def investigate_incident(
        narrative: str,
        log_path: str | None = None,
        repository_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt for an evidence-based incident investigation."""
        call_lines = [f"- narrative: {narrative}"]
        if log_path is not None:
            call_lines.append(f"- log_paths: [\"{log_path}\"]")
        call_block = "\n".join(call_lines)

        steps = []
        if repository_id is not None:
            steps.append(
                f"- First call connect_repository with repository_id \"{repository_id}\" "
                "so the analysis can search code. If it returns connected=false, continue "
                "without code search and say so.\n"
            )
        steps.append(
            "- Call analyze_incident with the parameters below.\n"
            "- If confidence is below 0.5, state that the conclusion is tentative.\n"
            "- Quote only log lines present in the evidence; do not fabricate lines.\n"
        )

        return [
            {
                "role": "system",
                "content": (
                    "You are a senior incident responder. Provide concise, evidence-based "
                    "root cause analysis. Do not invent details; if the evidence is "
                    "insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Investigate this incident. Follow this workflow:\n"
                    + "".join(steps)
                    + "\nCall analyze_incident with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Summary (1-3 bullets)\n"
                    "2) Root cause and confidence\n"
                    "3) Affected components and files\n"
                    "4) Suggested fixes, highest priority first\n"
                    "5) Tests to add\n"
                ),
            },
        ]

    @mcp.prompt()
    def create_postmortem(title: str, narrative: str) -> list[dict[str, Any]]:
        """Build a prompt that produces a Markdown postmortem."""
        return [
            {
                "role": "system",
                "content": (
                    "Create a blameless postmortem in Markdown. Redact secrets, credentials, "
                    "or PII if present."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Title: {title}\n\n"
                    "Use tool analyze_incident with the narrative below, then write sections:\n"
                    "- Summary\n"
                    "- Impact\n"
                    "- Root Cause\n"
                    "- Resolution\n"
                    "- Action Items\n\n"
                    f"Narrative:\n{narrative}\n"
                ),
            },
        ]
