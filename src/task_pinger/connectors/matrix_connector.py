# src/task_pinger/connectors/matrix_connector.py

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional, Set

from nio import AsyncClient, MatrixRoom, RoomGetEventResponse, RoomMessageText, RoomSendError

from ..cli.commands import registry as command_registry
from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..errors import DeliveryError
from ..tasks.reminders import render_reminder, render_reminder_html
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


def _ms_now() -> int:
    return int(time.time() * 1000)


def room_allowlist(settings_rooms: list[str]) -> Optional[Set[str]]:
    rooms = [r.strip() for r in (settings_rooms or []) if str(r).strip()]
    return set(rooms) if rooms else None


def split_reply_fallback(body: str) -> tuple[str, str]:
    """
    Split a Matrix reply body into (own text, quoted text).

    Clients prefix replies with the replied-to message as "> " lines
    followed by an empty line.
    """
    lines = body.split("\n")
    quoted: list[str] = []
    while lines and lines[0].startswith(">"):
        quoted.append(lines.pop(0)[1:].strip())
    if quoted and lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(lines), "\n".join(quoted)


def reply_to_event_id(event: RoomMessageText) -> str:
    content = (getattr(event, "source", None) or {}).get("content") or {}
    in_reply_to = (content.get("m.relates_to") or {}).get("m.in_reply_to") or {}
    return str(in_reply_to.get("event_id") or "")


async def fetch_replied_text(client: AsyncClient, room_id: str, event_id: str) -> str:
    """Plain and HTML body of the replied-to message ("" if it cannot be fetched)."""
    resp = await client.room_get_event(room_id, event_id)
    if not isinstance(resp, RoomGetEventResponse):
        logger.warning("Could not fetch replied-to event %s: %r", event_id, resp)
        return ""

    parts = (getattr(resp.event, "body", None), getattr(resp.event, "formatted_body", None))
    return "\n".join(p for p in parts if p)


class MatrixMessenger:
    """OutboundMessenger on top of a logged-in nio client."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def send_text(self, *, text: str, room_id: str | None = None, html: str | None = None) -> None:
        if not room_id:
            raise DeliveryError("no room to send the message to")

        content = {"msgtype": "m.text", "body": text}
        if html:
            content["format"] = "org.matrix.custom.html"
            content["formatted_body"] = html

        resp = await self._client.room_send(
            room_id=room_id,
            message_type="m.room.message",
            content=content,
            ignore_unverified_devices=True,
        )
        if isinstance(resp, RoomSendError):
            raise DeliveryError(f"could not send message to {room_id}: {resp.message}")


class MatrixNotifier:
    """Notifier that posts reminders into a Matrix room."""

    def __init__(self, messenger: OutboundMessenger, template: str) -> None:
        self._messenger = messenger
        self._template = template

    async def send(self, chat_target: str, mention: str, task: Task, timestamp: datetime) -> None:
        await self._messenger.send_text(
            text=render_reminder(self._template, mention, task),
            html=render_reminder_html(self._template, mention, task),
            room_id=chat_target,
        )


async def run_matrix_sync(state: AppState, client: AsyncClient, stop_event: asyncio.Event) -> None:
    """
    Matrix command loop: callbacks -> sync loop.

    Only slash commands are handled; everything else in the room is ignored.
    The loop exits when stop_event is set or the task is cancelled.
    """
    settings = state.settings
    messenger = MatrixMessenger(client)

    startup_ts = _ms_now()
    allowed_rooms = room_allowlist(getattr(settings, "matrix_rooms", []) or [])
    logger.info("Matrix allowed_rooms=%s", allowed_rooms if allowed_rooms is not None else "ALL")

    async def message_callback(room: MatrixRoom, event: RoomMessageText) -> None:
        ts = getattr(event, "server_timestamp", None)
        if ts is not None and ts <= startup_ts:
            return

        if event.sender == client.user_id:
            return

        if allowed_rooms is not None and room.room_id not in allowed_rooms:
            return

        body, quoted = split_reply_fallback(event.body or "")
        body = body.strip()
        if not body.startswith("/"):
            return

        logger.info("Matrix <%s> %s: %r", room.display_name, event.sender, body)

        try:
            replied_text = ""
            reply_to = reply_to_event_id(event)
            if reply_to:
                replied_text = await fetch_replied_text(client, room.room_id, reply_to) or quoted

            resp = await command_registry.handle(
                state,
                body,
                user_id=event.sender,
                room_id=room.room_id,
                direct=room.member_count == 2,
                replied_text=replied_text,
            )
        except Exception:
            logger.exception("Command handler crashed.")
            resp = "Internal error while handling a command."

        if not resp:
            return

        try:
            await messenger.send_text(text=resp, room_id=room.room_id)
        except Exception:
            logger.exception("Failed to send command reply.")

    client.add_event_callback(message_callback, RoomMessageText)

    try:
        logger.info("Matrix initial sync...")
        await client.sync(timeout=30000, full_state=True)
        logger.info("Matrix initial sync done. Joined rooms: %d", len(client.rooms))

        while not stop_event.is_set():
            await client.sync(timeout=30000, full_state=False)
    except asyncio.CancelledError:
        logger.info("Matrix connector cancelled.")
        raise
    except Exception:
        logger.exception("Matrix connector crashed.")
    finally:
        logger.info("Matrix connector stopped.")
