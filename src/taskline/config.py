# src/taskline/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Everything has a local default; nothing is required to start.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKLINE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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

    # ---- Storage ----
    data_dir: Path
    tasks_path: Path
    persistent: bool
    corrupt_records: str

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskline").strip() or "taskline"
        log_level = _env(_k("LOG_LEVEL"), "WARNING").strip() or "WARNING"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskline"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.txt")
        persistent = _env_bool(_k("PERSISTENT"), True)
        corrupt_records = _env(_k("CORRUPT_RECORDS"), "skip").strip().lower() or "skip"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            persistent=persistent,
            corrupt_records=corrupt_records,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
