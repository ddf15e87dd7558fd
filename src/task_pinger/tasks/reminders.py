# src/task_pinger/tasks/reminders.py

"""
Reminder message rendering shared by the notifiers.

Templates use str.format placeholders: {mention}, {title}, {link}, {deadline}.
"""

from __future__ import annotations

import html

from .task_models import Task


def render_reminder(template: str, mention: str, task: Task) -> str:
    return template.format(
        mention=mention,
        title=task.title,
        link=task.link,
        deadline=task.deadline_label(),
    )


def render_reminder_html(template: str, mention: str, task: Task) -> str:
    """Same text as render_reminder, with the title turned into a link to the task."""
    title = html.escape(task.title)
    if task.link:
        title = f'<a href="{html.escape(task.link, quote=True)}">{title}</a>'

    body = template.format(
        mention=html.escape(mention),
        title=title,
        link=html.escape(task.link),
        deadline=task.deadline_label(),
    )
    return body.replace("\n", "<br>")
