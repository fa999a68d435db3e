"""Session configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class SessionConfig:
    # Render scheduler
    batch_size: int = 500
    slice_ms: float = 50.0
    min_slice_ms: float = 4.0
    stats_interval_ms: float = 200.0

    search_min_chars: int = 2
    auto_follow: bool = True

    # Polling / change notification
    poll_interval_s: float = 1.0
    slow_poll_interval_s: float = 2.0
    slow_poll_after_lines: int = 10_000
    debounce_s: float = 0.1

    read_chunk_size: int = 65536


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def resolve_session_config(cfg: SessionConfig | None = None) -> SessionConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = SessionConfig()

    overrides: dict[str, object] = {}
    batch = _env_int("CONSOLE_LOG_BATCH_SIZE")
    if batch is not None:
        overrides["batch_size"] = batch
    slice_ms = _env_float("CONSOLE_LOG_SLICE_MS")
    if slice_ms is not None:
        overrides["slice_ms"] = slice_ms
    poll = _env_float("CONSOLE_LOG_POLL_INTERVAL")
    if poll is not None:
        overrides["poll_interval_s"] = poll

    if not overrides:
        return cfg
    return replace(cfg, **overrides)
