# src/lumina/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any


class RepeatType(StrEnum):
    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @classmethod
    def parse(cls, raw: Any) -> RepeatType:
        return _parse_enum(cls, raw, cls.NONE)


class Priority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHT[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        return _parse_enum(cls, raw, cls.MEDIUM)


_PRIORITY_WEIGHT = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class Category(StrEnum):
    WORK = "Work"
    PERSONAL = "Personal"
    HEALTH = "Health"
    SHOPPING = "Shopping"
    FINANCE = "Finance"
    EDUCATION = "Education"

    @classmethod
    def parse(cls, raw: Any) -> Category:
        return _parse_enum(cls, raw, cls.PERSONAL)


class TaskStatus(StrEnum):
    """Kanban column of a task. DONE always goes together with is_completed=True."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        return _parse_enum(cls, raw, cls.TODO)


def _parse_enum(enum_cls: Any, raw: Any, default: Any) -> Any:
    """Lenient lookup by value or by name, case-insensitive; unknown -> default."""
    if isinstance(raw, enum_cls):
        return raw
    if raw is None:
        return default
    text = str(raw).strip()
    if not text:
        return default
    for member in enum_cls:
        if text.lower() in (member.value.lower(), member.name.lower()):
            return member
    return default


def strict_enum(enum_cls: Any, raw: Any) -> Any:
    """Like _parse_enum but raises ValueError instead of defaulting."""
    text = str(raw).strip().lower()
    for member in enum_cls:
        if text in (member.value.lower(), member.name.lower()):
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"invalid {enum_cls.__name__}: {raw!r} (expected one of: {allowed})")


@dataclass(slots=True)
class Subtask:
    id: str
    title: str
    is_completed: bool = False


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    due_at: datetime
    repeat_type: RepeatType
    priority: Priority
    category: Category
    is_completed: bool
    status: TaskStatus
    created_at: int  # epoch milliseconds
    subtasks: list[Subtask] = field(default_factory=list)


@dataclass(slots=True)
class TaskDraft:
    """Create-time input; every omitted field gets the engine default."""

    title: str | None = None
    description: str | None = None
    due_at: datetime | None = None
    repeat_type: RepeatType | None = None
    priority: Priority | None = None
    category: Category | None = None
    subtasks: list[Subtask] | None = None


_PATCH_FIELDS = ("title", "description", "due_at", "repeat_type", "priority", "category", "subtasks")


@dataclass(slots=True)
class TaskPatch:
    """
    Partial edit of a task.

    Only the fields listed here may change through an edit; id, created_at and
    the completion state are owned by the engine.
    """

    title: str | None = None
    description: str | None = None
    due_at: datetime | None = None
    repeat_type: RepeatType | None = None
    priority: Priority | None = None
    category: Category | None = None
    subtasks: list[Subtask] | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in _PATCH_FIELDS)

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> TaskPatch:
        """
        Build a patch from loosely typed key/value pairs (CLI: title=..., due=...).

        Raises ValueError on unknown keys or values that do not parse.
        """
        patch = cls()
        for raw_key, raw_value in values.items():
            key = raw_key.strip().lower()
            if key == "title":
                patch.title = raw_value
            elif key in ("description", "desc"):
                patch.description = raw_value
            elif key in ("due", "due_at", "date"):
                patch.due_at = parse_datetime(raw_value)
            elif key in ("repeat", "repeat_type"):
                patch.repeat_type = strict_enum(RepeatType, raw_value)
            elif key == "priority":
                patch.priority = strict_enum(Priority, raw_value)
            elif key == "category":
                patch.category = strict_enum(Category, raw_value)
            else:
                raise ValueError(f"field {raw_key!r} cannot be edited")
        return patch


def apply_patch(task: Task, patch: TaskPatch) -> Task:
    changes: dict[str, Any] = {}
    for name in _PATCH_FIELDS:
        value = getattr(patch, name)
        if value is None:
            continue
        if name == "subtasks":
            value = [replace(s) for s in value]
        changes[name] = value
    if not changes:
        return task
    return replace(task, **changes)


# ---- JSON shape ----


def parse_datetime(raw: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp. A trailing "Z" is accepted; naive values are
    interpreted in local time.
    """
    if isinstance(raw, datetime):
        dt = raw
    else:
        text = str(raw).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def subtask_to_dict(s: Subtask) -> dict[str, Any]:
    return {"id": s.id, "title": s.title, "isCompleted": bool(s.is_completed)}


def subtask_from_dict(d: Mapping[str, Any]) -> Subtask:
    return Subtask(
        id=str(d["id"]),
        title=str(d.get("title") or ""),
        is_completed=bool(d.get("isCompleted", False)),
    )


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "dueDateTime": task.due_at.isoformat(),
        "repeatType": task.repeat_type.value,
        "priority": task.priority.value,
        "category": task.category.value,
        "isCompleted": task.is_completed,
        "status": task.status.value,
        "createdAt": task.created_at,
        "subtasks": [subtask_to_dict(s) for s in task.subtasks],
    }


def task_from_dict(d: Mapping[str, Any]) -> Task:
    """
    Rebuild a Task from its stored JSON shape.

    Enum fields fall back to defaults; a missing id or unparsable due date raises
    ValueError/KeyError so the loader can skip the record. Status and completion
    are reconciled (status wins) so a stored record can never violate the invariant.
    """
    task_id = str(d["id"]).strip()
    if not task_id:
        raise ValueError("task id is empty")

    status_raw = d.get("status")
    if status_raw is None:
        status = TaskStatus.DONE if d.get("isCompleted") else TaskStatus.TODO
    else:
        status = TaskStatus.parse(status_raw)

    subtasks: list[Subtask] = []
    for raw in d.get("subtasks") or []:
        if isinstance(raw, Mapping) and raw.get("id"):
            subtasks.append(subtask_from_dict(raw))

    return Task(
        id=task_id,
        title=str(d.get("title") or ""),
        description=str(d.get("description") or ""),
        due_at=parse_datetime(d["dueDateTime"]),
        repeat_type=RepeatType.parse(d.get("repeatType")),
        priority=Priority.parse(d.get("priority")),
        category=Category.parse(d.get("category")),
        is_completed=status == TaskStatus.DONE,
        status=status,
        created_at=int(d.get("createdAt") or 0),
        subtasks=subtasks,
    )
