# src/task_pinger/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..notion.client import NotionClient
from ..tasks.pinger import Pinger, ScheduleConfig
from ..tasks.task_cache import TasksCache
from ..tasks.user_directory import UserDirectory
from .clock import RealClock
from .ports import Clock


@dataclass
class AppState:
    # Settings are stored on the state so commands and connectors share one object.
    settings: Any

    directory: UserDirectory
    cache: TasksCache
    notion: NotionClient
    schedule: ScheduleConfig

    # Set by the service runner once a notifier is known.
    pinger: Pinger | None = None

    # Shared by the cache and the pinger; carries the reminder timezone.
    clock: Clock = field(default_factory=RealClock)

    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
