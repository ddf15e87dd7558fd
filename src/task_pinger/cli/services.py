# src/task_pinger/cli/services.py

"""
Background services: tasks cache refresh, pinger, Matrix command loop.

All three run as asyncio tasks on one event loop hosted in a background
thread, so the console REPL can block on input() in the main thread and
still submit commands to the same loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from ..connectors.console_connector import ConsoleNotifier
from ..core.ports import Notifier
from ..core.state import AppState
from ..tasks.pinger import Pinger

logger = logging.getLogger(__name__)


async def _run_services(state: AppState, stop_event: asyncio.Event) -> None:
    settings = state.settings
    client = None
    notifier: Notifier

    if settings.matrix_enabled:
        from ..connectors.matrix_client import create_matrix_client
        from ..connectors.matrix_connector import MatrixMessenger, MatrixNotifier

        client = await create_matrix_client(settings)
        if client is None:
            logger.error("Matrix client creation failed; reminders will be printed to the console.")

    if client is not None:
        notifier = MatrixNotifier(MatrixMessenger(client), state.schedule.message_template)
    else:
        notifier = ConsoleNotifier(state.schedule.message_template)

    pinger = Pinger(state.cache, state.directory, notifier, state.schedule, clock=state.clock)
    pinger.set_debug(bool(getattr(settings, "debug", False)))
    state.pinger = pinger

    tasks = [
        asyncio.create_task(state.cache.refresh_periodically(), name="cache-refresh"),
        asyncio.create_task(pinger.ping_periodically(), name="pinger"),
    ]
    if client is not None:
        from ..connectors.matrix_connector import run_matrix_sync

        tasks.append(asyncio.create_task(run_matrix_sync(state, client, stop_event), name="matrix"))

    logger.info("Services started: %s", ", ".join(t.get_name() for t in tasks))

    try:
        await stop_event.wait()
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if client is not None:
            with contextlib.suppress(Exception):
                await client.close()
        with contextlib.suppress(Exception):
            await state.notion.aclose()

        logger.info("Services stopped.")


@dataclass
class ServiceRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def submit(self, coro: Coroutine[Any, Any, Any]) -> "Future[Any]":
        """Run a coroutine on the service loop from another thread."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Service loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_services_in_background(state: AppState) -> ServiceRunner | None:
    """Start the service event loop in a daemon thread and wait until it is ready."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_services(state, stop_event))
        except Exception:
            logger.exception("Services crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    t = threading.Thread(target=runner, name="pinger-services", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Service thread did not initialize properly.")
        return None

    logger.info("Service thread started.")
    return ServiceRunner(thread=t, loop=loop, stop_event=stop_event)
