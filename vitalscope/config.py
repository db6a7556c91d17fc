from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int, *, min_v: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(min_v, value)


def _env_float(name: str, default: float, *, min_v: float = 0.1) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(min_v, value)


def _env_str(name: str) -> str | None:
    raw = (os.environ.get(name) or "").strip()
    return raw or None


@dataclass
class InstrumentationConfig:
    cdp_host: str = "127.0.0.1"
    cdp_port: int = 9222
    cdp_timeout: float = 5.0
    target_url: str | None = None
    boundary_selector: str | None = None
    # Timeline keeps the earliest entries when over the cap.
    timeline_max_entries: int = 80
    timeline_resource_limit: int = 50
    max_runs_history: int = 50
    vitals_history: int = 20
    feed_buffer_size: int = 1000
    log_level: str = "INFO"

    @staticmethod
    def normalize_log_level(raw: str | None) -> str:
        level = (raw or "").strip().upper()
        if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return level
        if level == "WARN":
            return "WARNING"
        return "INFO"

    @classmethod
    def from_env(cls) -> InstrumentationConfig:
        return cls(
            cdp_host=_env_str("VITALSCOPE_CDP_HOST") or "127.0.0.1",
            cdp_port=_env_int("VITALSCOPE_CDP_PORT", 9222),
            cdp_timeout=_env_float("VITALSCOPE_CDP_TIMEOUT", 5.0),
            target_url=_env_str("VITALSCOPE_TARGET"),
            boundary_selector=_env_str("VITALSCOPE_BOUNDARY"),
            timeline_max_entries=_env_int("VITALSCOPE_TIMELINE_MAX", 80),
            timeline_resource_limit=_env_int("VITALSCOPE_TIMELINE_RESOURCES", 50),
            max_runs_history=_env_int("VITALSCOPE_RUNS_HISTORY", 50),
            vitals_history=_env_int("VITALSCOPE_VITALS_HISTORY", 20),
            feed_buffer_size=_env_int("VITALSCOPE_FEED_BUFFER", 1000),
            log_level=cls.normalize_log_level(os.environ.get("VITALSCOPE_LOG_LEVEL")),
        )
