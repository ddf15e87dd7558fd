# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from task_pinger.core.state import AppState
from task_pinger.tasks.pinger import ScheduleConfig
from task_pinger.tasks.task_cache import TasksCache
from task_pinger.tasks.task_models import Assignee, Task
from task_pinger.tasks.user_directory import UserDirectory

from .fakes import FakeNotion, FakeTaskSource

UTC = timezone.utc

ALICE_ID = "7439e2ca-75f8-4024-b170-620ef7ed08b1"
BOB_ID = "0724b18e-320d-4fce-87f6-95d69b51c2c0"


@pytest.fixture()
def directory() -> UserDirectory:
    return UserDirectory(
        {
            "@alice:example.org": ALICE_ID,
            "@bob:example.org": BOB_ID,
        }
    )


@pytest.fixture()
def task_due() -> Task:
    return Task(
        title="Test task",
        assignees=(Assignee(name="Alice", id=ALICE_ID),),
        deadline=datetime(2025, 6, 14, 0, 0, tzinfo=UTC),
        link="https://www.notion.so/task",
    )


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    A SimpleNamespace keeps tests independent of the process environment.
    """
    return SimpleNamespace(
        app_name="task-pinger-test",
        log_level="INFO",
        debug=False,
        data_dir=tmp_path / "data",
        console_enabled=True,
        console_user="@alice:example.org",
        matrix_enabled=False,
        matrix_homeserver="",
        matrix_user_id="",
        matrix_password="",
        matrix_rooms=[],
        matrix_store_path=tmp_path / "data" / "matrix_store",
        notion_token="secret",
        notion_db="db-1",
        notion_timeout_seconds=1.0,
        cache_refresh_seconds=60,
        daily_start="09:00",
        daily_end="23:00",
        sweep_period_minutes=360,
        deadline_threshold_hours=24,
        message_template="{mention}: {title} ({deadline})",
        target_room="",
        timezone="UTC",
        users=f"@alice:example.org={ALICE_ID}, @bob:example.org={BOB_ID}",
        allowed_senders=[],
    )


@pytest.fixture()
def task_source() -> FakeTaskSource:
    return FakeTaskSource()


@pytest.fixture()
def state(settings: SimpleNamespace, directory: UserDirectory, task_source: FakeTaskSource) -> AppState:
    """AppState wired with fakes instead of Notion."""
    return AppState(
        settings=settings,
        directory=directory,
        cache=TasksCache(task_source, settings.notion_db, period=timedelta(minutes=1)),
        notion=FakeNotion(),
        schedule=ScheduleConfig.create(target_chat="console"),
    )
