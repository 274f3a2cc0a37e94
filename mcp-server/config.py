from __future__ import annotations

import os
from dataclasses import dataclass

_ENGLISH_LANGUAGE_ID = "2fbb5fe2e29a4d70aa5854ce7ce3e20b"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    """Process configuration read from the environment."""

    http_enabled: bool = True
    http_host: str = "0.0.0.0"
    http_port: int = 3334
    request_timeout: float = 30.0
    default_language_id: str = _ENGLISH_LANGUAGE_ID
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        http_enabled=_env_bool("MCP_HTTP_ENABLED", True),
        http_host=_env_str("MCP_HTTP_HOST", "0.0.0.0"),
        http_port=max(1, _env_int("MCP_HTTP_PORT", 3334)),
        request_timeout=max(1.0, _env_float("STORE_API_TIMEOUT_SEC", 30.0)),
        default_language_id=_env_str("SW_DEFAULT_LANGUAGE_ID", _ENGLISH_LANGUAGE_ID),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "load_settings"]
