from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .exceptions import ConfigurationError


BACKENDS = ("supabase", "sqlite")
DEFAULT_SQLITE_PATH = "./asset_listr.sqlite"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_str(*names: str) -> str:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return ""


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once from the environment.

    The hosted backend needs its endpoint URL and public (anon) key; without
    them the process must not start.
    """

    backend: str
    supabase_url: str
    supabase_anon_key: str
    sqlite_path: str
    http_timeout: float
    log_level: str
    log_json: bool

    @classmethod
    def from_env(cls) -> "Settings":
        backend = _env_str("ASSET_LISTR_BACKEND").lower() or "supabase"
        if backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown ASSET_LISTR_BACKEND {backend!r}; expected one of {', '.join(BACKENDS)}"
            )

        raw_timeout = _env_str("ASSET_LISTR_HTTP_TIMEOUT") or "10"
        try:
            http_timeout = float(raw_timeout)
        except ValueError:
            raise ConfigurationError(f"ASSET_LISTR_HTTP_TIMEOUT is not a number: {raw_timeout!r}")

        settings = cls(
            backend=backend,
            supabase_url=_env_str("ASSET_LISTR_SUPABASE_URL", "SUPABASE_URL").rstrip("/"),
            supabase_anon_key=_env_str("ASSET_LISTR_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY"),
            sqlite_path=_env_str("ASSET_LISTR_SQLITE_PATH") or DEFAULT_SQLITE_PATH,
            http_timeout=max(1.0, http_timeout),
            log_level=(_env_str("ASSET_LISTR_LOG_LEVEL") or "INFO").upper(),
            log_json=_env_bool("ASSET_LISTR_LOG_JSON", False),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.backend != "supabase":
            return
        missing = []
        if not self.supabase_url:
            missing.append("ASSET_LISTR_SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("ASSET_LISTR_SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationError(
                "Hosted backend is not configured. Expected variables: " + ", ".join(missing)
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()


def describe(settings: Optional[Settings] = None) -> dict:
    """Loggable view of the settings (no secrets)."""

    s = settings or get_settings()
    return {
        "backend": s.backend,
        "supabase_url": s.supabase_url,
        "supabase_anon_key_set": bool(s.supabase_anon_key),
        "sqlite_path": s.sqlite_path if s.backend == "sqlite" else None,
        "http_timeout": s.http_timeout,
        "log_level": s.log_level,
        "log_json": s.log_json,
    }
