# src/task_pinger/notion/client.py

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import httpx

from ..errors import NotionAPIError
from ..tasks.task_models import Task
from .parsing import (
    NotionSchema,
    build_create_payload,
    build_tasks_filter,
    extract_page_id,
    page_link,
    parse_task,
)

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1/"
NOTION_VERSION = "2022-06-28"

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRIES = 2


class NotionClient:
    """
    Minimal async Notion API client.

    - load_tasks/fetch: the TaskSource used by the tasks cache
    - create_task/set_deadline/set_status: used by chat commands

    Mutating calls are retried on transport errors and 5xx responses.
    """

    def __init__(
            self,
            token: str,
            schema: NotionSchema | None = None,
            *,
            base_url: str = NOTION_API_URL,
            timeout: float = DEFAULT_TIMEOUT_SECONDS,
            retries: int = DEFAULT_RETRIES,
            http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Notion token is not set. Set PINGER_NOTION_TOKEN in your .env.")

        self.schema = schema or NotionSchema()
        self._retries = max(1, int(retries))
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        self.debug = False

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "NotionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
            self,
            method: str,
            path: str,
            payload: dict[str, Any],
            *,
            retries: int = 1,
    ) -> dict[str, Any]:
        if self.debug:
            logger.info("Notion %s %s payload=%s", method, path, payload)

        last_error: NotionAPIError | None = None

        for attempt in range(1, retries + 1):
            try:
                resp = await self._http.request(method, path, json=payload, headers=self._headers)
            except httpx.HTTPError as e:
                last_error = NotionAPIError(f"request to Notion API failed: {e!r}")
            else:
                if resp.status_code < 300:
                    data = resp.json()
                    if not isinstance(data, dict):
                        raise NotionAPIError("invalid response from Notion API: expected an object")
                    return data

                last_error = NotionAPIError(
                    f"request to Notion API failed: status code is {resp.status_code}",
                    status_code=resp.status_code,
                )
                if resp.status_code < 500:
                    raise last_error

            logger.warning("%s (attempt %d/%d)", last_error, attempt, retries)
            if attempt < retries:
                logger.info("Retrying request to Notion API")

        assert last_error is not None
        raise last_error

    async def load_tasks(self, database_id: str) -> list[Task]:
        """Query every open task of the database (following pagination)."""
        body: dict[str, Any] = {"filter": build_tasks_filter(self.schema)}
        tasks: list[Task] = []

        while True:
            data = await self._request("POST", f"databases/{database_id}/query", body)

            for entry in data.get("results") or []:
                try:
                    tasks.append(parse_task(entry, self.schema))
                except ValueError as e:
                    logger.warning(
                        "Skipping task %s: invalid response from Notion API: %s", entry.get("id"), e
                    )

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return tasks
            body = {**body, "start_cursor": cursor}

    async def fetch(self, database_id: str) -> list[Task]:
        return await self.load_tasks(database_id)

    async def create_task(
            self,
            database_id: str,
            title: str,
            assignee_ids: list[str],
            description: str = "",
    ) -> str:
        """Create a task page and return its link."""
        payload = build_create_payload(
            self.schema,
            database_id,
            title,
            assignee_ids,
            description,
            now=datetime.now().astimezone(),
        )
        data = await self._request("POST", "pages", payload, retries=self._retries)

        page_id = str(data.get("id") or "")
        if not page_id:
            raise NotionAPIError("invalid response from Notion API: missing page id")
        return page_link(page_id)

    async def set_deadline(self, task_link: str, deadline: date) -> None:
        page_id = extract_page_id(task_link)
        if not page_id:
            raise ValueError(f"invalid task link {task_link}")

        payload = {
            "properties": {
                self.schema.deadline_property: {"date": {"start": deadline.isoformat()}},
            }
        }
        await self._request("PATCH", f"pages/{page_id}", payload, retries=self._retries)

    async def set_status(self, task_link: str, status: str) -> None:
        page_id = extract_page_id(task_link)
        if not page_id:
            raise ValueError(f"invalid task link {task_link}")

        payload = {
            "properties": {
                self.schema.status_property: {"select": {"name": status}},
            }
        }
        await self._request("PATCH", f"pages/{page_id}", payload, retries=self._retries)
