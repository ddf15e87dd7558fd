# src/task_pinger/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from concurrent.futures import Future
from datetime import datetime
from typing import Any

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.reminders import render_reminder
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

CONSOLE_TARGET = "console"

Submit = Callable[[Coroutine[Any, Any, Any]], "Future[Any]"]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """Notifier for local runs: prints reminders to stdout."""

    def __init__(self, template: str) -> None:
        self._template = template

    async def send(self, chat_target: str, mention: str, task: Task, timestamp: datetime) -> None:
        text = render_reminder(self._template, mention, task)
        print(f"\n[{timestamp:%Y-%m-%d %H:%M:%S}] [REMINDER -> {chat_target}]\n{text}\n", flush=True)


def is_multiline_command(line: str) -> bool:
    """Only /task continues on the next lines (assignees, description)."""
    words = line.split(maxsplit=1)
    return bool(words) and words[0].lower() == "/task"


def run_console_loop(state: AppState, submit: Submit) -> None:
    """
    Blocking REPL on the main thread.

    Commands run on the service event loop (submit) because they share the
    Notion client and the cache with the pinger.
    Multi-line commands (/task) are entered line by line and end with an empty line.
    """
    user_id = (getattr(state.settings, "console_user", "") or "").strip() or None
    logger.info("Console connector started (user=%s).", user_id)
    print(f"[{_ts_local()}] [CONSOLE] Type /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        text = line
        if is_multiline_command(line):
            extra: list[str] = []
            while True:
                try:
                    more = input("... ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not more.strip():
                    break
                extra.append(more)
            if extra:
                text = "\n".join([line, *extra])

        try:
            reply = submit(command_registry.handle(state, text, user_id=user_id, room_id=CONSOLE_TARGET)).result()
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Not a command. Use /help to list available commands."

        print(f"[{_ts_local()}] {reply}")

    logger.info("Console connector finished.")
