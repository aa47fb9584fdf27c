# src/lumina/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Everything tunable lives under the LUMINA_ prefix.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "LUMINA"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env values.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


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

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_path: Path

    # ---- Accounts ----
    seed_demo_user: bool

    # ---- Persistence / polling ----
    persist_debounce_seconds: float
    due_poll_interval_seconds: float
    due_window_seconds: float

    # ---- Gamification ----
    xp_per_completion: int

    # ---- Admin ----
    storage_quota_bytes: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "lumina").strip() or "lumina"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/lumina"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "lumina.sqlite3")

        seed_demo_user = _env_bool(_k("SEED_DEMO_USER"), True)

        persist_debounce_seconds = max(0.0, _env_float(_k("PERSIST_DEBOUNCE_SECONDS"), 0.5))
        due_poll_interval_seconds = max(0.5, _env_float(_k("DUE_POLL_INTERVAL_SECONDS"), 10.0))
        due_window_seconds = max(1.0, _env_float(_k("DUE_WINDOW_SECONDS"), 60.0))

        xp_per_completion = max(0, _env_int(_k("XP_PER_COMPLETION"), 50))

        # Browsers give localStorage roughly 5 MiB; the admin report mirrors that budget.
        storage_quota_bytes = max(1, _env_int(_k("STORAGE_QUOTA_BYTES"), 5 * 1024 * 1024))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_path=store_path,
            seed_demo_user=seed_demo_user,
            persist_debounce_seconds=persist_debounce_seconds,
            due_poll_interval_seconds=due_poll_interval_seconds,
            due_window_seconds=due_window_seconds,
            xp_per_completion=xp_per_completion,
            storage_quota_bytes=storage_quota_bytes,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
