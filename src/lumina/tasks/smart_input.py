# src/lumina/tasks/smart_input.py

from __future__ import annotations

"""
Quick-entry parser: "Buy milk !high tomorrow" -> title/priority/due draft.

Best effort by construction; anything it does not recognize stays in the title.
Date keywords are checked in a fixed order (tomorrow, tonight, next week) and
only the first one found is applied and removed.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from .task_models import Category, Priority, TaskDraft

_HIGH_RE = re.compile(r"!high|!important", re.IGNORECASE)
_LOW_RE = re.compile(r"!low", re.IGNORECASE)
_TOMORROW_RE = re.compile(r"tomorrow", re.IGNORECASE)
_TONIGHT_RE = re.compile(r"tonight", re.IGNORECASE)
_NEXT_WEEK_RE = re.compile(r"next week", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


@dataclass(slots=True, frozen=True)
class SmartTaskDraft:
    title: str
    priority: Priority
    due_at: datetime
    category: Category = Category.PERSONAL

    def to_draft(self) -> TaskDraft:
        return TaskDraft(
            title=self.title,
            priority=self.priority,
            due_at=self.due_at,
            category=self.category,
        )


def _at(day: datetime, hour: int) -> datetime:
    return day.replace(hour=hour, minute=0, second=0, microsecond=0)


def parse_smart_task(text: str, now: datetime) -> SmartTaskDraft:
    title = text
    priority = Priority.MEDIUM
    due_at = now

    if _HIGH_RE.search(title):
        priority = Priority.HIGH
        title = _HIGH_RE.sub("", title)
    elif _LOW_RE.search(title):
        priority = Priority.LOW
        title = _LOW_RE.sub("", title)

    if _TOMORROW_RE.search(title):
        due_at = _at(now + timedelta(days=1), 9)
        title = _TOMORROW_RE.sub("", title)
    elif _TONIGHT_RE.search(title):
        due_at = _at(now, 19)
        title = _TONIGHT_RE.sub("", title)
    elif _NEXT_WEEK_RE.search(title):
        due_at = _at(now + timedelta(days=7), 9)
        title = _NEXT_WEEK_RE.sub("", title)

    title = _WS_RE.sub(" ", title.strip())
    return SmartTaskDraft(title=title, priority=priority, due_at=due_at)
