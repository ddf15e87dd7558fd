# src/task_pinger/tasks/pinger.py

"""
Reminder scheduler ("pinger").

Once a day, between daily_start and daily_end, the pinger wakes up every
sweep_period and reminds assignees about tasks whose deadline is within
deadline_threshold (overdue tasks included). Reminders go out through an
injected Notifier, one message per task with all resolvable assignees
mentioned together.

The pinger only reads the tasks cache; it never fetches anything itself.
All waiting goes through the Clock port so the whole daily cycle can be
driven by a virtual clock in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum

from ..config import DEFAULT_MESSAGE_TEMPLATE
from ..core.clock import RealClock, elapsed
from ..core.ports import Clock, Notifier, TaskReader
from ..errors import ConfigError
from .task_models import Task
from .user_directory import UserDirectory

logger = logging.getLogger(__name__)

MENTION_SEPARATOR = ", "


class PingerState(str, Enum):
    WAITING_FOR_FIRST_TICK = "waiting_for_first_tick"
    SWEEPING_TODAY = "sweeping_today"
    WAITING_FOR_TOMORROW = "waiting_for_tomorrow"


def parse_time_of_day(raw: str, *, what: str = "time") -> time:
    """Parse "HH:MM" into a time-of-day."""
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except (ValueError, AttributeError) as e:
        raise ConfigError(f"invalid {what} {raw!r}, expected HH:MM") from e


@dataclass(frozen=True, slots=True)
class ScheduleConfig:
    daily_start: time = time(9, 0)
    daily_end: time = time(23, 0)
    sweep_period: timedelta = timedelta(hours=6)
    deadline_threshold: timedelta = timedelta(hours=24)
    message_template: str = DEFAULT_MESSAGE_TEMPLATE
    target_chat: str = ""

    def __post_init__(self) -> None:
        if self.sweep_period <= timedelta(0):
            raise ConfigError(f"sweep period must be positive, got {self.sweep_period}")
        if self.daily_start >= self.daily_end:
            raise ConfigError(
                f"daily start {self.daily_start:%H:%M} must be before daily end {self.daily_end:%H:%M}"
            )

    @classmethod
    def create(
            cls,
            *,
            daily_start: str = "09:00",
            daily_end: str = "23:00",
            sweep_period: timedelta = timedelta(hours=6),
            deadline_threshold: timedelta = timedelta(hours=24),
            message_template: str = DEFAULT_MESSAGE_TEMPLATE,
            target_chat: str = "",
    ) -> "ScheduleConfig":
        return cls(
            daily_start=parse_time_of_day(daily_start, what="start time"),
            daily_end=parse_time_of_day(daily_end, what="end time"),
            sweep_period=sweep_period,
            deadline_threshold=deadline_threshold,
            message_template=message_template,
            target_chat=target_chat,
        )


def _at(day: datetime, tod: time) -> datetime:
    """
    Wall-clock `tod` on the calendar day of `day`.

    With a real zone (ZoneInfo) the UTC offset is resolved for that date, so
    09:00 stays 09:00 local on DST changeover days.
    """
    return datetime.combine(day.date(), tod, tzinfo=day.tzinfo)


class Pinger:
    def __init__(
            self,
            cache: TaskReader,
            directory: UserDirectory,
            notifier: Notifier,
            config: ScheduleConfig,
            *,
            clock: Clock | None = None,
    ) -> None:
        self._cache = cache
        self._directory = directory
        self._notifier = notifier
        self._config = config
        self._clock: Clock = clock or RealClock()
        self._debug = False

        self.state = PingerState.WAITING_FOR_FIRST_TICK

    def set_debug(self, debug: bool) -> None:
        self._debug = debug

    def set_clock(self, clock: Clock) -> None:
        self._clock = clock

    def set_notifier(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def next_tick_after(self) -> datetime:
        """First tick of today's grid (daily_start + k * sweep_period) not before now."""
        now = self._clock.now()
        tick = _at(now, self._config.daily_start)
        while tick < now:
            tick += self._config.sweep_period
        return tick

    async def ping_periodically(self) -> None:
        """
        Run the daily reminder cycle forever.

        To stop the pinger, cancel the coroutine/task.
        """
        self.state = PingerState.WAITING_FOR_FIRST_TICK
        first_tick = self.next_tick_after()

        logger.info("Waiting until %s to send first reminders", first_tick.isoformat())
        await self._clock.sleep(self._clock.until(first_tick))

        while True:
            day = self._clock.now()

            start = _at(day, self._config.daily_start)
            if day < start:
                logger.info("Waiting until %s to start today's cycle", start.isoformat())
                await self._clock.sleep(self._clock.until(start))

            end = _at(day, self._config.daily_end)

            self.state = PingerState.SWEEPING_TODAY
            await self._ping_through_day(end)

            self.state = PingerState.WAITING_FOR_TOMORROW
            next_day = self._next_midnight(day)
            logger.info("Waiting until %s", next_day.isoformat())
            await self._clock.sleep(self._clock.until(next_day))

    def _next_midnight(self, day_started: datetime) -> datetime:
        # If sweeping already ran past midnight, that midnight is the one to wait for.
        now = self._clock.now()
        days = 1 if now.date() == day_started.date() else 0
        return datetime.combine(now.date() + timedelta(days=days), time(0), tzinfo=now.tzinfo)

    async def _ping_through_day(self, end: datetime) -> None:
        while True:
            now = self._clock.now()
            if now >= end:
                return

            await self.sweep(now)
            await self._clock.sleep(self._config.sweep_period)

    def is_due(self, task: Task, now: datetime) -> bool:
        deadline = task.deadline
        if deadline is None:
            return False
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=now.tzinfo)
        return elapsed(now, deadline) <= self._config.deadline_threshold

    def mention_for(self, task: Task) -> str:
        handles: list[str] = []
        for a in task.assignees:
            handle = self._directory.to_handle(a.id)
            if not handle:
                logger.warning(
                    "Could not resolve user ID '%s' (%s) to a chat handle, skipping them for task '%s'",
                    a.id,
                    a.name,
                    task.title,
                )
                continue
            handles.append(handle)
        return MENTION_SEPARATOR.join(handles)

    async def sweep(self, now: datetime) -> int:
        """One sweep tick over the current snapshot. Returns the number of reminders sent."""
        logger.info("Sending pings now")
        sent = 0

        for task in self._cache.tasks():
            if not self.is_due(task, now):
                if self._debug:
                    logger.info("Task '%s' is not due (deadline: %s)", task.title, task.deadline_label())
                continue

            mention = self.mention_for(task)
            if not mention:
                logger.warning("Skipping ping for task '%s': no assignee could be resolved", task.title)
                continue

            logger.info("Sending ping for task '%s' to '%s'", task.title, mention)
            try:
                await self._notifier.send(self._config.target_chat, mention, task, now)
            except Exception:
                logger.exception("Could not send ping on task '%s' to '%s'", task.title, mention)
                continue

            sent += 1

        return sent
