# src/task_pinger/core/clock.py

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import ConfigError

logger = logging.getLogger(__name__)


def elapsed(start: datetime, end: datetime) -> timedelta:
    """
    Real time between two aware datetimes.

    Subtracting datetimes that share one ZoneInfo compares wall clocks and
    is off by the DST shift across a changeover, so go through UTC.
    """
    return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)


def load_timezone(name: str) -> tzinfo:
    """IANA zone by name ("Europe/Berlin"). Raises ConfigError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone {name!r}") from e


def local_timezone() -> tzinfo:
    """
    The system timezone as a real zone, so wall-clock times resolve per date.

    Looks at $TZ, then /etc/localtime. If neither names a zone, the current
    fixed UTC offset is used and DST changes are not followed.
    """
    key = os.environ.get("TZ", "").lstrip(":")
    if key:
        try:
            return ZoneInfo(key)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("TZ=%r is not an IANA zone name", key)

    try:
        with open("/etc/localtime", "rb") as f:
            return ZoneInfo.from_file(f, key="localtime")
    except (OSError, ValueError):
        logger.warning("Could not determine the system timezone; set PINGER_TIMEZONE to follow DST changes")

    fixed = datetime.now().astimezone().tzinfo
    assert fixed is not None
    return fixed


class RealClock:
    """Wall clock in `tz` (the system timezone by default)."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz or local_timezone()

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    async def sleep(self, duration: timedelta) -> None:
        await asyncio.sleep(max(0.0, duration.total_seconds()))

    def until(self, ts: datetime) -> timedelta:
        return elapsed(self.now(), ts)
