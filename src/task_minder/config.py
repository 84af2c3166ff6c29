# src/task_minder/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every path lives under the local data dir unless overridden.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASK_MINDER"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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
    tasks_db_path: Path
    accounts_db_path: Path
    session_path: Path
    preferences_path: Path

    # ---- Remote config ----
    remote_config_source: str
    remote_config_timeout_seconds: float

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_interval_seconds: float
    reminder_retry_delay_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-minder").strip() or "task-minder"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_minder"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        accounts_db_path = _env_path(_k("ACCOUNTS_DB_PATH"), data_dir / "accounts.sqlite3")
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")
        preferences_path = _env_path(_k("PREFERENCES_PATH"), data_dir / "preferences.json")

        # Either an http(s) URL or a local JSON file; empty means "defaults only".
        remote_config_source = _env(
            _k("REMOTE_CONFIG_SOURCE"), str(data_dir / "remote_config.json")
        ).strip()
        remote_config_timeout_seconds = _env_float(_k("REMOTE_CONFIG_TIMEOUT_SECONDS"), 10.0)

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 15.0)
        reminder_retry_delay_seconds = _env_float(_k("REMINDER_RETRY_DELAY_SECONDS"), 60.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            accounts_db_path=accounts_db_path,
            session_path=session_path,
            preferences_path=preferences_path,
            remote_config_source=remote_config_source,
            remote_config_timeout_seconds=remote_config_timeout_seconds,
            reminders_enabled=reminders_enabled,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_retry_delay_seconds=reminder_retry_delay_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
