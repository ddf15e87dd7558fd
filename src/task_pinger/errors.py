# src/task_pinger/errors.py

"""Exception hierarchy shared by the core, the Notion client and the connectors."""

from __future__ import annotations


class PingerError(Exception):
    """Base class for all task-pinger errors."""


class ConfigError(PingerError, ValueError):
    """Invalid configuration. Raised at construction time and fatal at startup."""


class TaskSourceError(PingerError):
    """The task source could not produce a task list."""


class NotionAPIError(TaskSourceError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownUserError(PingerError, LookupError):
    def __init__(self, handle: str) -> None:
        super().__init__(f"login unknown: {handle}")
        self.handle = handle


class CommandError(PingerError):
    """A chat command was malformed; the message is shown to the sender."""

    def __init__(self, message: str, *, usage: str | None = None) -> None:
        super().__init__(message)
        self.usage = usage

    def reply_text(self) -> str:
        if not self.usage:
            return str(self)
        return f"{self}\n\nUsage:\n{self.usage}"


class DeliveryError(PingerError):
    """A chat message could not be delivered."""
