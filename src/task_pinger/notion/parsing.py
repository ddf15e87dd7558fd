# src/task_pinger/notion/parsing.py

"""
Mapping between Notion database rows and Task objects.

Property names and status values depend on how the database is set up, so
they live in NotionSchema rather than in the client code.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from ..tasks.task_models import Assignee, Task

logger = logging.getLogger(__name__)

NOTION_URL = "https://www.notion.so/"

_PAGE_ID_RE = re.compile(r"([0-9a-fA-F]{32})$")
_URL_RE = re.compile(r"https?://[^\s\"'<>]+")


@dataclass(frozen=True, slots=True)
class NotionSchema:
    title_property: str = "Задача"
    assignees_property: str = "Исполнитель"
    deadline_property: str = "Дедлайн"
    status_property: str = "Статус"
    moved_to_work_property: str = "_timeWhenMovedToWork"

    # Tasks in these statuses are finished or parked and never loaded.
    excluded_statuses: tuple[str, ...] = ("бэклог", "уже готово", "архивировано")
    new_status: str = "новая"
    done_status: str = "уже готово"


def page_link(page_id: str) -> str:
    return NOTION_URL + page_id.replace("-", "")


def extract_page_id(link: str) -> str:
    """
    Extract the page UUID from a Notion link.

    Accepts both "https://www.notion.so/<32 hex>" and the titled form
    "https://www.notion.so/Some-Task-<32 hex>". Returns "" if there is none.
    """
    path = urlsplit(link.strip()).path.rstrip("/")
    tail = path.rsplit("/", 1)[-1].replace("-", "") if path else ""

    m = _PAGE_ID_RE.search(tail)
    if not m:
        return ""

    raw = m.group(1).lower()
    return f"{raw[:8]}-{raw[8:12]}-{raw[12:16]}-{raw[16:20]}-{raw[20:]}"


def find_task_link(text: str) -> str:
    """First URL in `text` (plain or HTML) that points at a Notion page, or ""."""
    for m in _URL_RE.finditer(text):
        if extract_page_id(m.group(0)):
            return m.group(0)
    return ""


def parse_deadline(raw: str | None) -> datetime | None:
    """
    Parse a Notion date ("2025-12-31" or a full ISO timestamp).

    Date-only and naive values are taken in the local timezone.
    Invalid values are logged and treated as "no deadline".
    """
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Invalid deadline %r", raw)
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value


def build_tasks_filter(schema: NotionSchema) -> dict[str, Any]:
    conditions: list[dict[str, Any]] = [
        {"property": schema.status_property, "select": {"does_not_equal": status}}
        for status in schema.excluded_statuses
    ]
    conditions.append({"property": schema.status_property, "select": {"is_not_empty": True}})
    return {"and": conditions}


def parse_task(entry: dict[str, Any], schema: NotionSchema) -> Task:
    """Convert one query result into a Task. Raises ValueError for incomplete rows."""
    props = entry.get("properties") or {}

    title_parts = (props.get(schema.title_property) or {}).get("title") or []
    if not title_parts:
        raise ValueError("missing title")
    title = "".join(str(p.get("plain_text", "")) for p in title_parts)

    people = (props.get(schema.assignees_property) or {}).get("people") or []
    if not people:
        raise ValueError("missing assignees")
    assignees = tuple(
        Assignee(name=str(p.get("name") or ""), id=str(p.get("id") or "")) for p in people
    )

    date_field = (props.get(schema.deadline_property) or {}).get("date") or {}
    deadline = parse_deadline(date_field.get("start"))

    return Task(
        title=title,
        assignees=assignees,
        deadline=deadline,
        link=page_link(str(entry.get("id", ""))),
    )


def build_create_payload(
        schema: NotionSchema,
        database_id: str,
        title: str,
        assignee_ids: list[str],
        description: str,
        *,
        now: datetime,
) -> dict[str, Any]:
    properties: dict[str, Any] = {
        schema.title_property: {"title": [{"text": {"content": title}}]},
        schema.moved_to_work_property: {"date": {"start": now.isoformat(timespec="seconds")}},
        schema.status_property: {"select": {"name": schema.new_status}},
    }
    if assignee_ids:
        properties[schema.assignees_property] = {
            "people": [{"object": "user", "id": uid} for uid in assignee_ids]
        }

    payload: dict[str, Any] = {
        "parent": {"database_id": database_id},
        "properties": properties,
    }

    if description:
        payload["children"] = [
            {
                "object": "block",
                "type": "paragraph",
                "paragraph": {
                    "rich_text": [{"type": "text", "text": {"content": description}}],
                },
            }
        ]

    return payload
