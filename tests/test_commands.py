# tests/test_commands.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from task_pinger.cli.commands import parse_task_command, registry
from task_pinger.errors import CommandError
from task_pinger.tasks.task_models import Assignee, Task

from .conftest import ALICE_ID, BOB_ID, UTC

LINK = "https://www.notion.so/Write-report-0123456789abcdef0123456789abcdef"
ALICE = "@alice:example.org"


@pytest.mark.asyncio
async def test_non_command_is_ignored(state) -> None:
    assert await registry.handle(state, "hello there", ALICE) is None


@pytest.mark.asyncio
async def test_unknown_command(state) -> None:
    reply = await registry.handle(state, "/nope", ALICE)
    assert reply.startswith("Unknown command: /nope")


@pytest.mark.asyncio
async def test_help_lists_commands(state) -> None:
    reply = await registry.handle(state, "/h", ALICE)
    for name in ("/task", "/deadline", "/done", "/tasks", "/status"):
        assert name in reply


def test_parse_task_command() -> None:
    title, handles, description = parse_task_command(
        "Write report\n@bob:example.org @alice:example.org\nfirst line\nsecond line", ALICE
    )

    assert title == "Write report"
    assert handles == ["@bob:example.org", "@alice:example.org"]
    assert description == "first line\nsecond line"


def test_parse_task_command_defaults_to_sender() -> None:
    assert parse_task_command("Write report", ALICE) == ("Write report", [ALICE], "")


@pytest.mark.parametrize(("rest", "user_id"), [("", ALICE), ("   \n@bob:example.org", ALICE), ("Title", None)])
def test_parse_task_command_rejects_incomplete_input(rest: str, user_id: str | None) -> None:
    with pytest.raises(CommandError):
        parse_task_command(rest, user_id)


@pytest.mark.asyncio
async def test_task_creates_notion_page(state) -> None:
    reply = await registry.handle(
        state, "/task Write report\n@bob:example.org @alice:example.org\nsome details", ALICE
    )

    assert reply == (
        "Task has been successfully created and assigned to @bob:example.org, @alice:example.org:\n"
        "https://www.notion.so/0123456789abcdef0123456789abcdef"
    )
    assert state.notion.created == [("db-1", "Write report", [BOB_ID, ALICE_ID], "some details")]


@pytest.mark.asyncio
async def test_task_with_unknown_assignee_creates_nothing(state) -> None:
    reply = await registry.handle(state, "/task Write report\n@eve:example.org", ALICE)

    assert reply == "login unknown: @eve:example.org"
    assert state.notion.created == []


@pytest.mark.asyncio
async def test_task_without_title_shows_usage(state) -> None:
    reply = await registry.handle(state, "/task", ALICE)

    assert reply.startswith("please provide the task's name")
    assert "Usage:\n/task" in reply


@pytest.mark.asyncio
async def test_restricted_commands_check_sender(state) -> None:
    state.settings.allowed_senders = ["@bob:example.org"]

    reply = await registry.handle(state, "/done " + LINK, ALICE)

    assert reply == f"User {ALICE} is not allowed to run /done."
    assert state.notion.statuses == []

    # Unrestricted commands still work.
    assert (await registry.handle(state, "/tasks", ALICE)) == "No tasks found for you"


@pytest.mark.asyncio
async def test_deadline(state) -> None:
    reply = await registry.handle(state, f"/deadline 2025-06-20 {LINK}", ALICE)

    assert reply == "Deadline has been successfully set to 2025-06-20"
    assert state.notion.deadlines == [(LINK, date(2025, 6, 20))]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("text", "error"),
    [
        (f"/deadline {LINK}", "please provide a deadline and a task link"),
        (f"/deadline 20.06.2025 {LINK}", "invalid deadline 20.06.2025"),
        ("/deadline 2025-06-20 https://www.notion.so/task", "https://www.notion.so/task is not a link to a task"),
    ],
)
async def test_deadline_rejects_bad_input(state, text: str, error: str) -> None:
    reply = await registry.handle(state, text, ALICE)

    assert reply.startswith(error)
    assert state.notion.deadlines == []


@pytest.mark.asyncio
async def test_done(state) -> None:
    reply = await registry.handle(state, f"/done {LINK}", ALICE)

    assert reply == "Task has been successfully marked as Done"
    assert state.notion.statuses == [(LINK, state.notion.schema.done_status)]


@pytest.mark.asyncio
async def test_done_without_link(state) -> None:
    reply = await registry.handle(state, "/done", ALICE)
    assert reply.startswith("please provide a task link")


@pytest.mark.asyncio
async def test_tasks_lists_callers_tasks(state, task_source) -> None:
    task_source.tasks = [
        Task(
            title="Write report",
            assignees=(Assignee(name="Alice", id=ALICE_ID),),
            deadline=datetime(2025, 6, 14, tzinfo=UTC),
            link="https://www.notion.so/1",
        ),
        Task(title="Bob's task", assignees=(Assignee(name="Bob", id=BOB_ID),)),
        Task(title="Review", assignees=(Assignee(name="Alice", id=ALICE_ID),), link="https://www.notion.so/2"),
    ]
    await state.cache.refresh()

    reply = await registry.handle(state, "/tasks", ALICE)

    assert reply == (
        "Your tasks:\n\n"
        "1. Write report (Deadline: 2025-06-14)\n"
        "   https://www.notion.so/1\n"
        "2. Review\n"
        "   https://www.notion.so/2"
    )


@pytest.mark.asyncio
async def test_tasks_for_unknown_user(state) -> None:
    reply = await registry.handle(state, "/tasks", "@eve:example.org")
    assert reply.startswith("user @eve:example.org is not found in the system")


@pytest.mark.asyncio
async def test_status(state) -> None:
    reply = await registry.handle(state, "/status", ALICE)

    assert "09:00-23:00" in reply
    assert "Pinger: not running" in reply
    assert "Known users: 2" in reply


REMINDER = (
    "Hi, what's the estimate?\n\n@alice:example.org\n\nWrite report\n"
    f"{LINK}\nDeadline: 2025-06-14"
)


@pytest.mark.asyncio
async def test_deadline_as_reply_takes_link_from_replied_message(state) -> None:
    reply = await registry.handle(state, "/deadline 2025-06-20", ALICE, replied_text=REMINDER)

    assert reply == "Deadline has been successfully set to 2025-06-20"
    assert state.notion.deadlines == [(LINK, date(2025, 6, 20))]


@pytest.mark.asyncio
async def test_done_as_reply_takes_link_from_replied_html(state) -> None:
    html = f'@alice:example.org<br><a href="{LINK}">Write report</a>'

    reply = await registry.handle(state, "/done", ALICE, replied_text=html)

    assert reply == "Task has been successfully marked as Done"
    assert state.notion.statuses == [(LINK, state.notion.schema.done_status)]


@pytest.mark.asyncio
async def test_inline_link_wins_over_replied_message(state) -> None:
    other = "https://www.notion.so/ffffffffffffffffffffffffffffffff"

    await registry.handle(state, f"/done {other}", ALICE, replied_text=REMINDER)

    assert state.notion.statuses == [(other, state.notion.schema.done_status)]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/done", "/deadline 2025-06-20"])
async def test_reply_to_message_without_task_link(state, text: str) -> None:
    reply = await registry.handle(state, text, ALICE, replied_text="lunch at noon?")

    assert reply.startswith("command is not a reply to a task")
    assert state.notion.statuses == []
    assert state.notion.deadlines == []


def test_parse_task_command_in_direct_chat_assigns_sender() -> None:
    title, handles, description = parse_task_command(
        "Write report\n@bob:example.org\nsecond line", ALICE, direct=True
    )

    assert title == "Write report"
    assert handles == [ALICE]
    assert description == "@bob:example.org\nsecond line"


@pytest.mark.asyncio
async def test_task_in_direct_chat(state) -> None:
    reply = await registry.handle(state, "/task Write report\nall the details", ALICE, direct=True)

    assert reply.startswith(f"Task has been successfully created and assigned to {ALICE}:")
    assert state.notion.created == [("db-1", "Write report", [ALICE_ID], "all the details")]
