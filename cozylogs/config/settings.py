from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CONFIG_URL = "https://raw.githubusercontent.com/Gabe-Real/Cozy-crashes/refs/heads/master/module-log-parser/pastebins.yml"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Remote config (link pattern, paste hosts, global predicates)
    config_url: Optional[str]
    config_refresh_minutes: int
    config_strict_bootstrap: bool

    # Retrieval
    fetch_timeout_seconds: float
    fetch_max_bytes: int
    retrieval_max_workers: int

    log_level: str


def load_settings() -> Settings:
    config_url = (os.getenv("PASTEBIN_CONFIG_URL") or "").strip()
    if config_url.lower() in ("none", "off", "disabled"):
        url: Optional[str] = None
    else:
        url = config_url or DEFAULT_CONFIG_URL

    return Settings(
        config_url=url,
        config_refresh_minutes=max(1, _env_int("PASTEBIN_REFRESH_MINS", 60)),
        config_strict_bootstrap=_env_bool("PASTEBIN_CONFIG_STRICT", False),
        fetch_timeout_seconds=_env_float("LOG_FETCH_TIMEOUT_SECONDS", 10.0),
        fetch_max_bytes=max(1024, _env_int("LOG_FETCH_MAX_BYTES", 10 * 1024 * 1024)),
        retrieval_max_workers=max(1, _env_int("RETRIEVAL_MAX_WORKERS", 4)),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
    )
