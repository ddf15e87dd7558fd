# src/task_pinger/core/ports.py

"""
Ports (interfaces) used by the core.

The reminder engine depends on Protocols instead of concrete implementations.
This keeps the task source, the chat transport and time itself swappable,
and makes the scheduler testable without Notion, Matrix or real sleeping.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from datetime import datetime, timedelta
from typing import Protocol

from ..tasks.task_models import Task


class Clock(Protocol):
    """Current time plus a way to wait. Durations may be negative (= fire now)."""

    def now(self) -> datetime: ...
    def sleep(self, duration: timedelta) -> Awaitable[None]: ...
    def until(self, ts: datetime) -> timedelta: ...


class TaskSource(Protocol):
    """Returns the complete current task list of a database (never a delta)."""

    def fetch(self, database_id: str) -> Awaitable[Sequence[Task]]: ...


class TaskReader(Protocol):
    def tasks(self) -> Sequence[Task]: ...


class Notifier(Protocol):
    """
    Sends one reminder for one task.

    chat_target is transport specific (a Matrix room id, "console", ...).
    Failures are raised; the scheduler logs them and moves on.
    """

    def send(
            self,
            chat_target: str,
            mention: str,
            task: Task,
            timestamp: datetime,
    ) -> Awaitable[None]: ...


class OutboundMessenger(Protocol):
    """Connector-side port: how services can send text outward."""

    def send_text(
            self,
            *,
            text: str,
            room_id: str | None = None,
            html: str | None = None,
    ) -> Awaitable[None]: ...
