# src/lumina/admin.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from .core.ports import ConfirmGate, KeyValueStorage
from .errors import StorageFailure
from .notes.note_models import Note
from .tasks.task_models import Task
from .users.user_models import User

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DayActivity:
    day: date
    created: int
    completed: int


@dataclass(slots=True, frozen=True)
class AdminStats:
    users: int
    tasks_total: int
    tasks_completed: int
    notes: int
    storage_bytes: int
    storage_percent: float
    activity: list[DayActivity] = field(default_factory=list)


def weekly_activity(tasks: Iterable[Task], today: date) -> list[DayActivity]:
    """
    Last 7 days, oldest first: tasks created on the day and completed tasks due on the day
    (completion time is not recorded, so the due day stands in for it).
    """
    items = list(tasks)
    out: list[DayActivity] = []
    for back in range(6, -1, -1):
        d = today - timedelta(days=back)
        created = sum(
            1 for t in items if date.fromtimestamp(t.created_at / 1000) == d
        )
        completed = sum(
            1 for t in items if t.is_completed and t.due_at.astimezone().date() == d
        )
        out.append(DayActivity(day=d, created=created, completed=completed))
    return out


def collect_stats(
    storage: KeyValueStorage,
    users: list[User],
    tasks: list[Task],
    notes: list[Note],
    *,
    quota_bytes: int,
    today: date,
) -> AdminStats:
    try:
        used = storage.total_size()
    except StorageFailure:
        logger.exception("Storage size query failed")
        used = 0
    percent = (used / quota_bytes) * 100 if quota_bytes > 0 else 0.0
    return AdminStats(
        users=len(users),
        tasks_total=len(tasks),
        tasks_completed=sum(1 for t in tasks if t.is_completed),
        notes=len(notes),
        storage_bytes=used,
        storage_percent=round(percent, 2),
        activity=weekly_activity(tasks, today),
    )


def factory_reset(
    storage: KeyValueStorage,
    gate: ConfirmGate,
    *,
    before_clear: Callable[[], None] | None = None,
) -> bool:
    """
    Wipe every key (all users, sessions, collections) after confirmation.

    before_clear runs once the user has confirmed, so pending writes can be
    flushed and in-memory state dropped before the storage goes away.
    """
    if not gate.confirm("Factory reset: delete ALL local data?"):
        logger.info("Factory reset cancelled")
        return False
    if before_clear is not None:
        before_clear()
    storage.clear()
    logger.warning("Factory reset: local storage cleared")
    return True
