# src/task_pinger/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- validates settings once (configuration errors are fatal here),
- ensures local (gitignored) directories exist,
- wires the Notion client, tasks cache and user directory into AppState.

The pinger itself is created by the service runner, which knows the notifier.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..config import get_settings
from ..connectors.console_connector import CONSOLE_TARGET
from ..core.clock import RealClock, load_timezone, local_timezone
from ..core.state import AppState
from ..errors import ConfigError
from ..notion.client import NotionClient
from ..tasks.pinger import ScheduleConfig
from ..tasks.task_cache import TasksCache
from ..tasks.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.matrix_enabled:
        settings.matrix_store_path.mkdir(parents=True, exist_ok=True)


def _target_chat(settings) -> str:
    if settings.target_room:
        return settings.target_room
    if not settings.matrix_enabled:
        return CONSOLE_TARGET
    if settings.matrix_rooms:
        return settings.matrix_rooms[0]
    raise ConfigError("Matrix is enabled but no reminder room is set: set PINGER_TARGET_ROOM")


def build_schedule(settings) -> ScheduleConfig:
    """Raises ConfigError on malformed times or a non-positive period."""
    return ScheduleConfig.create(
        daily_start=settings.daily_start,
        daily_end=settings.daily_end,
        sweep_period=timedelta(minutes=settings.sweep_period_minutes),
        deadline_threshold=timedelta(hours=settings.deadline_threshold_hours),
        message_template=settings.message_template,
        target_chat=_target_chat(settings),
    )


def create_initial_state(*, settings=None, notion: NotionClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the Notion client) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if not settings.notion_db:
        raise ConfigError("Notion database is not set: set PINGER_NOTION_DB")
    if settings.cache_refresh_seconds <= 0:
        raise ConfigError(f"cache refresh period must be positive, got {settings.cache_refresh_seconds}s")

    schedule = build_schedule(settings)
    directory = UserDirectory.parse(settings.users or "")
    if not len(directory):
        logger.warning("No users configured (PINGER_USERS): nobody can be reminded.")

    tz_name = getattr(settings, "timezone", "") or ""
    clock = RealClock(load_timezone(tz_name) if tz_name else local_timezone())
    logger.info("Reminder times are in %s", clock.tz)

    _ensure_local_dirs(settings)

    if notion is None:
        if not settings.notion_token:
            raise ConfigError("Notion token is not set: set PINGER_NOTION_TOKEN")
        notion = NotionClient(settings.notion_token, timeout=settings.notion_timeout_seconds)
    notion.debug = settings.debug

    cache = TasksCache(
        notion,
        settings.notion_db,
        period=timedelta(seconds=settings.cache_refresh_seconds),
        clock=clock,
    )
    cache.set_debug(settings.debug)

    return AppState(
        settings=settings,
        directory=directory,
        cache=cache,
        notion=notion,
        schedule=schedule,
        clock=clock,
    )
