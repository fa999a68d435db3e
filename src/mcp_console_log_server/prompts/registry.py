"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_levels(levels: Sequence[str] | str) -> str:
    """Return levels as a JSON array literal for prompt display."""
    if isinstance(levels, str):
        items = [s.strip().upper() for s in levels.split(",") if s.strip()]
    else:
        items = [str(s).strip().upper() for s in levels if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def summarize_resource(uri: str) -> list[dict[str, Any]]:
        """Build a prompt that summarizes a resource URI."""
        return [
            {
                "role": "system",
                "content": (
                    "You are a precise assistant. Summarize the provided resource clearly and "
                    "concisely. Point out failures and anything that needs follow-up."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Summarize this resource:"},
                    {"type": "resource", "uri": uri},
                ],
            },
        ]

    @mcp.prompt()
    def triage_console_log(
        log_path: str,
        levels: Sequence[str] | str = ("ERROR", "WARN"),
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt for triaging a CI build console log."""
        call_lines = [
            f"- log_path: {log_path}",
            f"- levels: {_format_levels(levels)}",
        ]
        if search:
            call_lines.append(f"- search: {search}")
        call_block = "\n".join(call_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are a build and test triage assistant. "
                    "Give concise, evidence-based summaries of CI console output. "
                    "Do not invent details; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Triage the build log using parse_console_log. Follow this workflow:\n"
                    "- Call parse_console_log first with the parameters below.\n"
                    "- Use the navigation list to name failed test cases, stages and steps "
                    "(outcome=failed). Regions with outcome=pending never finished.\n"
                    "- Levels must be a list of strings (JSON array), e.g., [\"ERROR\", \"WARN\"].\n"
                    "- If the build is still running, call refresh_console_log to pick up new lines.\n"
                    "- Quote only lines returned by the tools; do not fabricate output.\n\n"
                    "Call parse_console_log with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Build outcome (1-2 bullets)\n"
                    "2) Failed regions (name, kind, line range)\n"
                    "3) Evidence (2-5 quoted lines with their index)\n"
                    "4) Next actions (2-4 bullets)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: if you need raw context, you can read the log via:",
                    },
                    {"type": "resource", "uri": f"log://{log_path}"},
                ],
            },
        ]
