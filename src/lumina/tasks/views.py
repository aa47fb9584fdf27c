# src/lumina/tasks/views.py

from __future__ import annotations

"""Read-side helpers over a task list. Pure functions; nothing here is stored."""

from collections.abc import Iterable
from datetime import date, datetime
from enum import StrEnum

from .task_models import Task, TaskStatus


class TaskFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


def display_key(task: Task) -> tuple[bool, int, float]:
    return (task.is_completed, -task.priority.weight, task.due_at.timestamp())


def sort_for_display(tasks: Iterable[Task]) -> list[Task]:
    """Incomplete before complete, then High > Medium > Low, then earliest due first."""
    return sorted(tasks, key=display_key)


def filter_tasks(tasks: Iterable[Task], mode: TaskFilter | str = TaskFilter.ALL) -> list[Task]:
    mode = TaskFilter(mode)
    if mode == TaskFilter.ACTIVE:
        return [t for t in tasks if not t.is_completed]
    if mode == TaskFilter.COMPLETED:
        return [t for t in tasks if t.is_completed]
    return list(tasks)


def group_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    """Kanban columns in board order."""
    columns: dict[TaskStatus, list[Task]] = {s: [] for s in TaskStatus}
    for t in tasks:
        columns[t.status].append(t)
    return columns


def tasks_due_on(tasks: Iterable[Task], day: date) -> list[Task]:
    """Tasks whose due instant falls on `day` in local time, incomplete first."""
    hits = [t for t in tasks if t.due_at.astimezone().date() == day]
    return sorted(hits, key=lambda t: t.is_completed)


def upcoming(tasks: Iterable[Task], now: datetime, limit: int = 5) -> list[Task]:
    """Dashboard list: open tasks due from now on, soonest first."""
    open_tasks = [t for t in tasks if not t.is_completed and t.due_at >= now]
    open_tasks.sort(key=lambda t: t.due_at)
    return open_tasks[: max(0, int(limit))]
