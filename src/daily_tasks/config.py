# src/daily_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the GitHub token is optional).
- Paths default to a gitignored local data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DAILY_TASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_path: Path

    # ---- Note export ----
    notes_enabled: bool
    notes_dir: Path

    # ---- GitHub ----
    github_token: str | None
    github_api_url: str
    github_timeout_seconds: float

    # ---- Behaviour ----
    history_limit: int
    rollover_on_start: bool

    @staticmethod
    def from_env() -> "Settings":
        load_dotenv(override=False)

        app_name = _env(_k("APP_NAME"), "daily-tasks").strip() or "daily-tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/daily_tasks"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "store.sqlite3")

        notes_enabled = _env_bool(_k("NOTES_ENABLED"), True)
        notes_dir = _env_path(_k("NOTES_DIR"), data_dir / "notes")

        # Accept the conventional GITHUB_TOKEN as a fallback.
        github_token = _first_env(_k("GITHUB_TOKEN"), "GITHUB_TOKEN", default=None)
        github_api_url = _env(_k("GITHUB_API_URL"), "https://api.github.com").rstrip("/")
        github_timeout_seconds = _env_float(_k("GITHUB_TIMEOUT_SECONDS"), 15.0)

        history_limit = max(1, _env_int(_k("HISTORY_LIMIT"), 50))
        rollover_on_start = _env_bool(_k("ROLLOVER_ON_START"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_path=store_path,
            notes_enabled=notes_enabled,
            notes_dir=notes_dir,
            github_token=github_token,
            github_api_url=github_api_url,
            github_timeout_seconds=github_timeout_seconds,
            history_limit=history_limit,
            rollover_on_start=rollover_on_start,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
