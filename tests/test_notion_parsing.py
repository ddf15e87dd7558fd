# tests/test_notion_parsing.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from task_pinger.notion.parsing import (
    NotionSchema,
    build_create_payload,
    build_tasks_filter,
    extract_page_id,
    find_task_link,
    page_link,
    parse_deadline,
    parse_task,
)

from .conftest import ALICE_ID, BOB_ID, UTC

PAGE_ID = "01234567-89ab-cdef-0123-456789abcdef"


def _entry(**props) -> dict:
    schema = NotionSchema()
    properties = {
        schema.title_property: {"title": [{"plain_text": "Write "}, {"plain_text": "report"}]},
        schema.assignees_property: {"people": [{"name": "Alice", "id": ALICE_ID}]},
        schema.deadline_property: {"date": {"start": "2025-06-14T12:00:00+00:00"}},
    }
    properties.update(props)
    return {"id": PAGE_ID, "properties": properties}


@pytest.mark.parametrize(
    "link",
    [
        "https://www.notion.so/0123456789abcdef0123456789abcdef",
        "https://www.notion.so/Write-report-0123456789abcdef0123456789abcdef",
        "https://www.notion.so/workspace/Write-report-0123456789ABCDEF0123456789ABCDEF?pvs=4",
        f"https://www.notion.so/{PAGE_ID}/",
    ],
)
def test_extract_page_id(link: str) -> None:
    assert extract_page_id(link) == PAGE_ID


@pytest.mark.parametrize("link", ["", "https://www.notion.so/", "https://www.notion.so/task", "not a link"])
def test_extract_page_id_rejects_links_without_id(link: str) -> None:
    assert extract_page_id(link) == ""


def test_page_link_strips_dashes() -> None:
    assert page_link(PAGE_ID) == "https://www.notion.so/0123456789abcdef0123456789abcdef"


def test_parse_deadline() -> None:
    assert parse_deadline(None) is None
    assert parse_deadline("") is None
    assert parse_deadline("soon") is None
    assert parse_deadline("2025-06-14T12:00:00+03:00") == datetime(
        2025, 6, 14, 12, tzinfo=timezone(timedelta(hours=3))
    )

    date_only = parse_deadline("2025-06-14")
    assert date_only is not None
    assert date_only.tzinfo is not None
    assert (date_only.year, date_only.month, date_only.day, date_only.hour) == (2025, 6, 14, 0)


def test_parse_task() -> None:
    task = parse_task(_entry(), NotionSchema())

    assert task.title == "Write report"
    assert [a.id for a in task.assignees] == [ALICE_ID]
    assert task.deadline == datetime(2025, 6, 14, 12, tzinfo=UTC)
    assert task.link == "https://www.notion.so/0123456789abcdef0123456789abcdef"


def test_parse_task_without_deadline() -> None:
    schema = NotionSchema()
    task = parse_task(_entry(**{schema.deadline_property: {"date": None}}), schema)
    assert task.deadline is None


@pytest.mark.parametrize(
    ("prop", "value", "error"),
    [
        ("title_property", {"title": []}, "missing title"),
        ("assignees_property", {"people": []}, "missing assignees"),
    ],
)
def test_parse_task_rejects_incomplete_rows(prop: str, value: dict, error: str) -> None:
    schema = NotionSchema()
    with pytest.raises(ValueError, match=error):
        parse_task(_entry(**{getattr(schema, prop): value}), schema)


def test_tasks_filter_excludes_finished_statuses() -> None:
    schema = NotionSchema(status_property="Status", excluded_statuses=("done",))

    assert build_tasks_filter(schema) == {
        "and": [
            {"property": "Status", "select": {"does_not_equal": "done"}},
            {"property": "Status", "select": {"is_not_empty": True}},
        ]
    }


def test_create_payload() -> None:
    schema = NotionSchema()
    now = datetime(2025, 6, 13, 10, 30, tzinfo=UTC)

    payload = build_create_payload(schema, "db-1", "Write report", [ALICE_ID, BOB_ID], "details", now=now)

    assert payload["parent"] == {"database_id": "db-1"}
    props = payload["properties"]
    assert props[schema.title_property] == {"title": [{"text": {"content": "Write report"}}]}
    assert props[schema.status_property] == {"select": {"name": schema.new_status}}
    assert props[schema.moved_to_work_property] == {"date": {"start": "2025-06-13T10:30:00+00:00"}}
    assert props[schema.assignees_property]["people"] == [
        {"object": "user", "id": ALICE_ID},
        {"object": "user", "id": BOB_ID},
    ]
    assert payload["children"][0]["paragraph"]["rich_text"][0]["text"]["content"] == "details"


def test_create_payload_without_description_has_no_children() -> None:
    payload = build_create_payload(
        NotionSchema(), "db-1", "t", [ALICE_ID], "", now=datetime(2025, 6, 13, tzinfo=UTC)
    )
    assert "children" not in payload


@pytest.mark.parametrize(
    ("text", "want"),
    [
        (
            "Write report\nhttps://www.notion.so/Write-report-0123456789abcdef0123456789abcdef\nDeadline: -",
            "https://www.notion.so/Write-report-0123456789abcdef0123456789abcdef",
        ),
        (
            '<a href="https://www.notion.so/0123456789abcdef0123456789abcdef">Write report</a>',
            "https://www.notion.so/0123456789abcdef0123456789abcdef",
        ),
        (
            "see https://example.org/docs then https://www.notion.so/0123456789abcdef0123456789abcdef",
            "https://www.notion.so/0123456789abcdef0123456789abcdef",
        ),
        ("no links here", ""),
        ("https://www.notion.so/task", ""),
    ],
)
def test_find_task_link(text: str, want: str) -> None:
    assert find_task_link(text) == want
