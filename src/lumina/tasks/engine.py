# src/lumina/tasks/engine.py

from __future__ import annotations

"""
Task lifecycle engine.

Owns the in-memory task list of the active user and is its only writer.
Operations run synchronously, keep `is_completed == (status == DONE)` for every
task, and return effect values instead of performing side effects.

Two asymmetries are deliberate:
- recurrence regeneration happens only through toggle_complete, never through
  change_status (the kanban board can mark a repeating task done without
  spawning the next occurrence);
- un-completing a task does not take XP back and does not remove an occurrence
  that was already spawned.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from ..core.effects import Effect, XpAward
from ..core.ports import Clock, IdFactory
from .recurrence import advance
from .task_models import (
    Category,
    Priority,
    RepeatType,
    Subtask,
    Task,
    TaskDraft,
    TaskPatch,
    TaskStatus,
    apply_patch,
    epoch_ms,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Task"


@dataclass(slots=True, frozen=True)
class TransitionResult:
    task: Task
    spawned: Task | None = None
    effects: list[Effect] = field(default_factory=list)


class TaskEngine:
    def __init__(
        self,
        *,
        clock: Clock,
        id_factory: IdFactory,
        xp_per_completion: int = 50,
        on_change: Callable[[list[Task]], None] | None = None,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._xp = max(0, int(xp_per_completion))
        self._tasks: list[Task] = []
        self.on_change = on_change

    # ---- state ----

    @property
    def tasks(self) -> list[Task]:
        """Snapshot of the collection (insertion order)."""
        return list(self._tasks)

    def load(self, tasks: Iterable[Task]) -> None:
        """Replace the in-memory collection without triggering persistence."""
        self._tasks = list(tasks)
        logger.debug("Engine loaded %d tasks", len(self._tasks))

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _new_id(self) -> str:
        existing = {t.id for t in self._tasks}
        while True:
            candidate = self._id_factory()
            if candidate not in existing:
                return candidate

    def _changed(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(list(self._tasks))
        except Exception:
            logger.exception("on_change callback failed")

    # ---- lifecycle ----

    def create(self, draft: TaskDraft | None = None) -> Task:
        draft = draft or TaskDraft()
        now = self._clock.now()
        task = Task(
            id=self._new_id(),
            title=draft.title or DEFAULT_TITLE,
            description=draft.description or "",
            due_at=draft.due_at or now,
            repeat_type=draft.repeat_type or RepeatType.NONE,
            priority=draft.priority or Priority.MEDIUM,
            category=draft.category or Category.PERSONAL,
            is_completed=False,
            status=TaskStatus.TODO,
            created_at=epoch_ms(now),
            subtasks=[replace(s) for s in (draft.subtasks or [])],
        )
        self._tasks.append(task)
        logger.info("Task created id=%s repeat=%s due=%s", task.id, task.repeat_type.value, task.due_at)
        self._changed()
        return task

    def edit(self, task_id: str, patch: TaskPatch) -> Task | None:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("edit: no task id=%s", task_id)
            return None
        updated = apply_patch(self._tasks[idx], patch)
        if updated is self._tasks[idx]:
            return updated
        self._tasks[idx] = updated
        self._changed()
        return updated

    def toggle_complete(self, task_id: str) -> TransitionResult | None:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("toggle_complete: no task id=%s", task_id)
            return None

        task = self._tasks[idx]
        if task.is_completed:
            reopened = replace(task, is_completed=False, status=TaskStatus.TODO)
            self._tasks[idx] = reopened
            logger.info("Task reopened id=%s", task_id)
            self._changed()
            return TransitionResult(task=reopened)

        done = replace(task, is_completed=True, status=TaskStatus.DONE)
        self._tasks[idx] = done

        spawned: Task | None = None
        if task.repeat_type != RepeatType.NONE:
            spawned = self._next_occurrence(task)
            self._tasks.append(spawned)
            logger.info("Task %s completed; next occurrence %s due=%s", task_id, spawned.id, spawned.due_at)
        else:
            logger.info("Task completed id=%s", task_id)

        self._changed()
        return TransitionResult(task=done, spawned=spawned, effects=self._completion_effects())

    def change_status(self, task_id: str, status: TaskStatus) -> TransitionResult | None:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("change_status: no task id=%s", task_id)
            return None

        task = self._tasks[idx]
        is_completed = status == TaskStatus.DONE
        effects: list[Effect] = []
        if is_completed and not task.is_completed:
            effects = self._completion_effects()

        updated = replace(task, status=status, is_completed=is_completed)
        self._tasks[idx] = updated
        logger.info("Task %s status %s -> %s", task_id, task.status.value, status.value)
        self._changed()
        return TransitionResult(task=updated, effects=effects)

    def delete(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("delete: no task id=%s", task_id)
            return False
        del self._tasks[idx]
        logger.info("Task deleted id=%s", task_id)
        self._changed()
        return True

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Swap in a whole collection (backup import) and persist it."""
        self._tasks = list(tasks)
        logger.info("Task collection replaced (%d tasks)", len(self._tasks))
        self._changed()

    def clear(self) -> None:
        self.replace_all([])

    # ---- subtasks ----

    def add_subtask(self, task_id: str, title: str) -> Subtask | None:
        idx = self._index_of(task_id)
        if idx is None or not title.strip():
            return None
        task = self._tasks[idx]
        sub = Subtask(id=self._id_factory(), title=title.strip())
        self._tasks[idx] = replace(task, subtasks=[*task.subtasks, sub])
        self._changed()
        return sub

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Subtask | None:
        """Flip one subtask. The parent's status is never derived from its subtasks."""
        idx = self._index_of(task_id)
        if idx is None:
            return None
        task = self._tasks[idx]
        toggled: Subtask | None = None
        subs: list[Subtask] = []
        for s in task.subtasks:
            if s.id == subtask_id:
                toggled = replace(s, is_completed=not s.is_completed)
                subs.append(toggled)
            else:
                subs.append(s)
        if toggled is None:
            return None
        self._tasks[idx] = replace(task, subtasks=subs)
        self._changed()
        return toggled

    def remove_subtask(self, task_id: str, subtask_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            return False
        task = self._tasks[idx]
        subs = [s for s in task.subtasks if s.id != subtask_id]
        if len(subs) == len(task.subtasks):
            return False
        self._tasks[idx] = replace(task, subtasks=subs)
        self._changed()
        return True

    # ---- helpers ----

    def _next_occurrence(self, task: Task) -> Task:
        return replace(
            task,
            id=self._new_id(),
            due_at=advance(task.due_at, task.repeat_type),
            is_completed=False,
            status=TaskStatus.TODO,
            created_at=epoch_ms(self._clock.now()),
            subtasks=[Subtask(id=self._id_factory(), title=s.title) for s in task.subtasks],
        )

    def _completion_effects(self) -> list[Effect]:
        return [XpAward(amount=self._xp)] if self._xp > 0 else []
