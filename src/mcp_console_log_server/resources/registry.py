"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_console_log_server.core.classifier import DEFAULT_KEYWORDS, LEVEL_STYLES
from mcp_console_log_server.core.navigation import DEFAULT_PATTERNS, FAILURE_TOKENS
from mcp_console_log_server.core.records import NavigationEntry, PresentationRecord, StatsSnapshot
from mcp_console_log_server.core.sources import FileSource

ALLOWED_FILE_SUFFIXES = {".log", ".txt"}
BASE_DIR_ENV = "CONSOLE_LOG_BASE_DIR"

SAMPLE_LOG = (
    "[INFO] Starting build\n"
    "[Pipeline] { (Checkout)\n"
    "+ git fetch origin\n"
    "[Pipeline] }\n"
    "Starting TestCase: LoginTest\n"
    "[DEBUG] Loading config\n"
    "SUMMARY of TestCase [LoginTest]: PASSED\n"
    "Starting TestCase: FailTest\n"
    "[ERROR] Assertion failed\n"
    "SUMMARY of TestCase [FailTest]: ERROR\n"
    "[WARN] Deprecated API\n"
)


def _base_dir() -> Path:
    """Return the resolved base directory for file resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _allowed_suffix(path: Path) -> str:
    """Return the effective suffix for allowlist checks."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        suffix = path.with_suffix("").suffix.lower()
    return suffix


def _resolve_resource_path(path: str) -> Path:
    """Resolve and validate a resource file path."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    if _allowed_suffix(resolved) not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")
    return resolved


def severity_levels() -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for level, keys in DEFAULT_KEYWORDS.items():
        style = LEVEL_STYLES[level]
        out[level.value] = {"keywords": list(keys), "color": style.color, "priority": style.priority}
    return out


def navigation_patterns() -> list[dict[str, Any]]:
    return [
        {
            "kind": p.kind,
            "start": p.start.pattern,
            "end": p.end.pattern if p.end is not None else None,
            "icon": p.icon,
        }
        for p in DEFAULT_PATTERNS
    ]


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://console-log/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        base = _base_dir()
        return (
            "Resources:\n"
            "- app://console-log/help\n"
            "- app://console-log/config/severity-levels\n"
            "- app://console-log/config/navigation-patterns\n"
            "- app://console-log/schemas/presentation-record\n"
            "- app://console-log/examples/sample-log\n"
            f"- log://{{path}} (restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {base}\n"
        )

    @mcp.resource("app://console-log/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny sample console log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://console-log/config/severity-levels")
    def severity_levels_resource() -> dict[str, dict[str, Any]]:
        """Return level keywords, colors and priorities in match order."""
        return severity_levels()

    @mcp.resource("app://console-log/config/navigation-patterns")
    def navigation_patterns_resource() -> dict[str, Any]:
        """Return the ordered region patterns and the failure tokens."""
        return {"patterns": navigation_patterns(), "failure_tokens": list(FAILURE_TOKENS)}

    @mcp.resource("app://console-log/schemas/presentation-record")
    def presentation_schema() -> dict[str, Any]:
        """Return JSON schemas for line, navigation and stats records."""
        return {
            "line": PresentationRecord.model_json_schema(),
            "navigation": NavigationEntry.model_json_schema(),
            "stats": StatsSnapshot.model_json_schema(),
        }

    @mcp.resource("log://{path}")
    async def read_log(path: str) -> str:
        """Return the full log contents."""
        p = _resolve_resource_path(path)
        return await FileSource(p).read()
