# src/task_pinger/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class Assignee:
    name: str
    id: str


@dataclass(slots=True, frozen=True)
class Task:
    """
    One task row as fetched from the database.

    Tasks are never mutated after fetching; a refresh replaces the whole list.
    deadline=None means the task has no deadline.
    """

    title: str
    assignees: tuple[Assignee, ...] = field(default_factory=tuple)
    deadline: datetime | None = None
    link: str = ""

    def has_deadline(self) -> bool:
        return self.deadline is not None

    def is_assigned_to(self, user_id: str) -> bool:
        uid = user_id.strip().lower()
        return any(a.id.strip().lower() == uid for a in self.assignees)

    def deadline_label(self) -> str:
        if self.deadline is None:
            return "-"
        return self.deadline.strftime("%Y-%m-%d")
