# src/task_pinger/tasks/task_cache.py

"""
Tasks cache.

Holds the most recently fetched snapshot of the task list. The snapshot is an
immutable tuple that is swapped as a whole on every successful refresh, so
readers never observe a half-updated list.

The cache is read from two threads (the service loop and the console REPL),
so the reference swap is guarded by a lock. The network fetch itself always
happens outside the lock.
"""

from __future__ import annotations

import logging
import threading
from datetime import timedelta

from ..core.clock import RealClock
from ..core.ports import Clock, TaskSource
from .task_models import Task

logger = logging.getLogger(__name__)


class TasksCache:
    def __init__(
            self,
            source: TaskSource,
            database_id: str,
            *,
            period: timedelta = timedelta(minutes=5),
            clock: Clock | None = None,
    ) -> None:
        self._source = source
        self._database_id = database_id
        self._period = period
        self._clock: Clock = clock or RealClock()
        self._debug = False

        self._lock = threading.Lock()
        self._snapshot: tuple[Task, ...] = ()

    @property
    def period(self) -> timedelta:
        return self._period

    def set_debug(self, debug: bool) -> None:
        self._debug = debug

    def tasks(self) -> tuple[Task, ...]:
        with self._lock:
            return self._snapshot

    def tasks_for_user(self, user_id: str) -> list[Task]:
        return [t for t in self.tasks() if t.is_assigned_to(user_id)]

    async def refresh(self) -> tuple[Task, ...]:
        """
        Fetch the full task list and replace the snapshot.

        On failure the previous snapshot is kept and the exception propagates.
        """
        fetched = tuple(await self._source.fetch(self._database_id))

        if self._debug:
            for t in fetched:
                logger.info(
                    "Task: %s | assignees: %s | deadline: %s | url: %s",
                    t.title,
                    ", ".join(f"{a.name} ({a.id})" for a in t.assignees),
                    t.deadline.isoformat() if t.deadline else "-",
                    t.link,
                )

        with self._lock:
            self._snapshot = fetched

        return fetched

    async def refresh_periodically(self) -> None:
        """
        Refresh forever, every `period`.

        A failed refresh is logged and the stale snapshot keeps serving readers.
        To stop, cancel the coroutine/task.
        """
        while True:
            logger.info("Will load tasks now")
            try:
                tasks = await self.refresh()
            except Exception:
                logger.exception("Could not load tasks, keeping %d cached", len(self.tasks()))
            else:
                logger.info("%d tasks loaded, next refresh in %s", len(tasks), self._period)

            await self._clock.sleep(self._period)
