# src/tasknotify/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every key has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKNOTIFY"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


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

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path

    # ---- Notifications ----
    backend_timeout_seconds: float
    cancel_on_complete: bool
    reschedule_on_start: bool

    show_alert: bool
    show_badge: bool
    play_sound: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasknotify") or "tasknotify"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasknotify"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")

        # Backend calls are local and fast; anything slower is treated as a failure.
        backend_timeout_seconds = max(0.1, _env_float(_k("BACKEND_TIMEOUT_SECONDS"), 5.0))

        # Completing a task leaves its reminders alone unless this is switched on.
        cancel_on_complete = _env_bool(_k("CANCEL_ON_COMPLETE"), False)
        reschedule_on_start = _env_bool(_k("RESCHEDULE_ON_START"), True)

        show_alert = _env_bool(_k("SHOW_ALERT"), True)
        show_badge = _env_bool(_k("SHOW_BADGE"), True)
        play_sound = _env_bool(_k("PLAY_SOUND"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            backend_timeout_seconds=backend_timeout_seconds,
            cancel_on_complete=cancel_on_complete,
            reschedule_on_start=reschedule_on_start,
            show_alert=show_alert,
            show_badge=show_badge,
            play_sound=play_sound,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
