# src/task_pinger/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (settings are built lazily by get_settings()).
- Schedule values stay raw strings/numbers here; ScheduleConfig validates them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigError

ENV_PREFIX = "PINGER"

DEFAULT_MESSAGE_TEMPLATE = (
    "Hi, what's the estimate?\n\n{mention}\n\n{title}\n{link}\nDeadline: {deadline}"
)


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


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name}: expected an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name}: expected a number, got {raw!r}") from None


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


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
    debug: bool
    data_dir: Path

    # ---- Connector flags ----
    console_enabled: bool
    console_user: str
    matrix_enabled: bool

    # ---- Matrix ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_rooms: List[str]
    matrix_store_path: Path

    # ---- Notion ----
    notion_token: Optional[str]
    notion_db: str
    notion_timeout_seconds: float
    cache_refresh_seconds: int

    # ---- Reminders ----
    daily_start: str
    daily_end: str
    sweep_period_minutes: int
    deadline_threshold_hours: int
    message_template: str
    target_room: str
    timezone: str

    # ---- Users / access ----
    users: str
    allowed_senders: List[str]

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pinger"))

        notion_token = _env(_k("NOTION_TOKEN")).strip() or None
        # Templates come with literal "\n" when set from a one-line env file.
        message_template = _env(_k("MESSAGE_TEMPLATE"), DEFAULT_MESSAGE_TEMPLATE).replace("\\n", "\n")

        return Settings(
            app_name=_env(_k("APP_NAME"), "task-pinger"),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            debug=_env_bool(_k("DEBUG"), False),
            data_dir=data_dir,
            console_enabled=_env_bool(_k("CONSOLE_ENABLED"), True),
            console_user=_env(_k("CONSOLE_USER")).strip(),
            matrix_enabled=_env_bool(_k("MATRIX_ENABLED"), False),
            matrix_homeserver=_env(_k("MATRIX_HOMESERVER")).strip(),
            matrix_user_id=_env(_k("MATRIX_USER_ID")).strip(),
            matrix_password=_env(_k("MATRIX_PASSWORD")).strip(),
            matrix_rooms=_env_list(_k("MATRIX_ROOMS"), []),
            matrix_store_path=_env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store"),
            notion_token=notion_token,
            notion_db=_env(_k("NOTION_DB")).strip(),
            notion_timeout_seconds=_env_float(_k("NOTION_TIMEOUT_SECONDS"), 10.0),
            cache_refresh_seconds=_env_int(_k("CACHE_REFRESH_SECONDS"), 300),
            daily_start=_env(_k("DAILY_START"), "09:00").strip(),
            daily_end=_env(_k("DAILY_END"), "23:00").strip(),
            sweep_period_minutes=_env_int(_k("SWEEP_PERIOD_MINUTES"), 360),
            deadline_threshold_hours=_env_int(_k("DEADLINE_THRESHOLD_HOURS"), 24),
            message_template=message_template,
            target_room=_env(_k("TARGET_ROOM")).strip(),
            timezone=_env(_k("TIMEZONE")).strip(),
            users=_env(_k("USERS")),
            allowed_senders=[s.lower() for s in _env_list(_k("ALLOWED_SENDERS"), [])],
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
