# src/lumina/agenda.py

from __future__ import annotations

"""Calendar bucketing: month grid cells and the rolling agenda."""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from .tasks.task_models import Task
from .tasks.views import tasks_due_on


def month_grid(year: int, month: int) -> list[date | None]:
    """
    Cells of a Sunday-first month view: None for the leading blanks, then each day.
    """
    first = date(year, month, 1)
    leading = (first.weekday() + 1) % 7  # Monday=0 -> Sunday-first column index
    _, ndays = calendar.monthrange(year, month)
    cells: list[date | None] = [None] * leading
    cells.extend(date(year, month, d) for d in range(1, ndays + 1))
    return cells


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


@dataclass(slots=True)
class AgendaDay:
    day: date
    tasks: list[Task] = field(default_factory=list)


def agenda(tasks: Iterable[Task], today: date, *, days: int = 14, min_days: int = 3) -> list[AgendaDay]:
    """Next `days` days that have tasks; the first `min_days` days are always listed."""
    items = list(tasks)
    out: list[AgendaDay] = []
    for i in range(max(0, days)):
        d = today + timedelta(days=i)
        bucket = tasks_due_on(items, d)
        if bucket or i < min_days:
            out.append(AgendaDay(day=d, tasks=bucket))
    return out
