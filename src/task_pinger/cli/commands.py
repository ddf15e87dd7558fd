# src/task_pinger/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date

from ..core.state import AppState
from ..errors import CommandError, PingerError
from ..notion.parsing import extract_page_id, find_task_link

logger = logging.getLogger(__name__)

_COMMAND_RE = re.compile(r"^/(\S+)")

TASK_USAGE = "/task $task_name\n$assignee1 $assignee2 ...\n$task_description (optional)"
DIRECT_TASK_USAGE = "/task $task_name\n$task_description (optional)"
DEADLINE_USAGE = "/deadline YYYY-MM-DD $task_link\nor reply to a task message with /deadline YYYY-MM-DD"
DONE_USAGE = "/done $task_link\nor reply to a task message with /done"
TASKS_USAGE = "/tasks"


@dataclass(frozen=True, slots=True)
class CommandContext:
    """
    Where a command came from.

    direct: sent in a one-to-one chat with the bot.
    replied_text: text of the message the command replies to ("" if none).
    """

    user_id: str | None = None
    room_id: str | None = None
    direct: bool = False
    replied_text: str = ""


CommandHandler = Callable[[AppState, str, CommandContext], Awaitable[str]]


@dataclass(slots=True)
class _Command:
    handler: CommandHandler
    help_text: str
    restricted: bool


class CommandRegistry:
    """
    Slash-command registry used by connectors (/task, /tasks, /help, ...).

    Handlers are coroutines receiving the text after the command name
    (which may span several lines). Restricted commands are only available
    to senders in settings.allowed_senders (an empty list allows everybody).
    """

    def __init__(self) -> None:
        self._commands: dict[str, _Command] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        *,
        restricted: bool = False,
    ) -> None:
        key = name.lower()
        self._commands[key] = _Command(handler=handler, help_text=help_text, restricted=restricted)
        for alias in aliases or []:
            self._aliases[alias.lower()] = key

    def _lookup(self, name: str) -> _Command | None:
        key = name.lower()
        return self._commands.get(self._aliases.get(key, key))

    async def handle(
        self,
        state: AppState,
        text: str,
        user_id: str | None = None,
        room_id: str | None = None,
        *,
        direct: bool = False,
        replied_text: str = "",
    ) -> str | None:
        """
        Handle a message like "/command rest of message".
        Returns a reply string or None if the message is not a command.
        """
        m = _COMMAND_RE.match(text)
        if not m:
            return None

        name = m.group(1)
        rest = text[m.end():].lstrip(" ")

        command = self._lookup(name)
        if command is None:
            return f"Unknown command: /{name}. Use /help to list available commands."

        if command.restricted and not _is_allowed(state, user_id):
            logger.warning("User %s is not allowed to run /%s", user_id, name)
            return f"User {user_id or 'unknown'} is not allowed to run /{name}."

        ctx = CommandContext(user_id=user_id, room_id=room_id, direct=direct, replied_text=replied_text)
        try:
            return await command.handler(state, rest, ctx)
        except CommandError as e:
            logger.info("Invalid /%s from %s: %s", name, user_id, e)
            return e.reply_text()
        except PingerError as e:
            logger.warning("/%s from %s failed: %s", name, user_id, e)
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, command in self._commands.items():
            lines.append(f"  /{name} - {command.help_text}")
        return "\n".join(lines)


def _is_allowed(state: AppState, user_id: str | None) -> bool:
    allowed = list(getattr(state.settings, "allowed_senders", []) or [])
    if not allowed:
        return True
    return bool(user_id) and user_id.strip().lower() in allowed


registry = CommandRegistry()


def parse_task_command(
        rest: str, user_id: str | None, *, direct: bool = False
) -> tuple[str, list[str], str]:
    """
    Split "/task" text into (title, assignee handles, description).

    In a direct chat the task always goes to the sender and every line after
    the title is description. Elsewhere the second line lists assignees;
    without it the task is assigned to the sender.
    """
    usage = DIRECT_TASK_USAGE if direct else TASK_USAGE
    lines = rest.split("\n")

    title = lines[0].strip()
    if not title:
        raise CommandError("please provide the task's name", usage=usage)

    if direct:
        if not user_id:
            raise CommandError("could not tell who sent the task", usage=usage)
        return title, [user_id], "\n".join(lines[1:]).strip()

    handles = lines[1].split() if len(lines) >= 2 else []
    if not handles:
        if not user_id:
            raise CommandError("please provide the task's name and an assignee", usage=usage)
        handles = [user_id]

    description = "\n".join(lines[2:]).strip()
    return title, handles, description


async def cmd_task(state: AppState, rest: str, ctx: CommandContext) -> str:
    title, handles, description = parse_task_command(rest, ctx.user_id, direct=ctx.direct)

    assignee_ids = state.directory.resolve_all(handles)
    url = await state.notion.create_task(state.settings.notion_db, title, assignee_ids, description)

    logger.info("Task '%s' created by %s: %s", title, ctx.user_id, url)
    return f"Task has been successfully created and assigned to {', '.join(handles)}:\n{url}"


def _require_link(raw: str, usage: str) -> str:
    link = raw.strip()
    if not link:
        raise CommandError("please provide a task link", usage=usage)
    if not extract_page_id(link):
        raise CommandError(f"{link} is not a link to a task", usage=usage)
    return link


def _replied_link(ctx: CommandContext, usage: str) -> str:
    link = find_task_link(ctx.replied_text)
    if not link:
        raise CommandError("command is not a reply to a task", usage=usage)
    return link


async def cmd_deadline(state: AppState, rest: str, ctx: CommandContext) -> str:
    parts = rest.split()
    if len(parts) == 2:
        raw_deadline, raw_link = parts
    elif len(parts) == 1 and ctx.replied_text:
        raw_deadline, raw_link = parts[0], ""
    else:
        raise CommandError("please provide a deadline and a task link", usage=DEADLINE_USAGE)

    try:
        deadline = date.fromisoformat(raw_deadline)
    except ValueError:
        raise CommandError(f"invalid deadline {raw_deadline}", usage=DEADLINE_USAGE) from None

    if raw_link:
        link = _require_link(raw_link, DEADLINE_USAGE)
    else:
        link = _replied_link(ctx, DEADLINE_USAGE)
    await state.notion.set_deadline(link, deadline)

    return f"Deadline has been successfully set to {deadline.isoformat()}"


async def cmd_done(state: AppState, rest: str, ctx: CommandContext) -> str:
    if not rest.strip() and ctx.replied_text:
        link = _replied_link(ctx, DONE_USAGE)
    else:
        link = _require_link(rest, DONE_USAGE)
    await state.notion.set_status(link, state.notion.schema.done_status)
    return "Task has been successfully marked as Done"


async def cmd_tasks(state: AppState, rest: str, ctx: CommandContext) -> str:
    notion_id = state.directory.to_external(ctx.user_id or "")
    if not notion_id:
        raise CommandError(f"user {ctx.user_id or 'unknown'} is not found in the system", usage=TASKS_USAGE)

    tasks = state.cache.tasks_for_user(notion_id)
    if not tasks:
        return "No tasks found for you"

    lines = ["Your tasks:", ""]
    for i, task in enumerate(tasks, start=1):
        line = f"{i}. {task.title}"
        if task.has_deadline():
            line += f" (Deadline: {task.deadline_label()})"
        lines.append(line)
        if task.link:
            lines.append(f"   {task.link}")
    return "\n".join(lines)


async def cmd_status(state: AppState, rest: str, ctx: CommandContext) -> str:
    schedule = state.schedule
    pinger_state = state.pinger.state.value if state.pinger is not None else "not running"
    return (
        "Status:\n"
        f"  Reminders: {schedule.daily_start:%H:%M}-{schedule.daily_end:%H:%M} "
        f"every {schedule.sweep_period}, threshold {schedule.deadline_threshold}\n"
        f"  Pinger: {pinger_state}\n"
        f"  Cached tasks: {len(state.cache.tasks())}\n"
        f"  Known users: {len(state.directory)}\n"
        f"  Up since: {state.started_at:%Y-%m-%d %H:%M}"
    )


async def cmd_help(state: AppState, rest: str, ctx: CommandContext) -> str:
    return registry.build_help()


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show reminder schedule and cache state.")
registry.register(
    "task",
    cmd_task,
    help_text="Create a task: /task name, then assignees and description on the next lines.",
    restricted=True,
)
registry.register(
    "deadline",
    cmd_deadline,
    help_text="Set a deadline: /deadline YYYY-MM-DD link, or reply to a task with /deadline YYYY-MM-DD.",
    restricted=True,
)
registry.register(
    "done", cmd_done, help_text="Mark a task as done: /done link, or reply to a task with /done.", restricted=True
)
registry.register("tasks", cmd_tasks, help_text="List your open tasks.")
