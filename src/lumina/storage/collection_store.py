# src/lumina/storage/collection_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any, TypeVar

from ..core.ports import KeyValueStorage
from ..errors import StorageFailure
from ..notes.note_models import Note, note_from_dict, note_to_dict
from ..tasks.task_models import Task, task_from_dict, task_to_dict
from ..workouts.workout_models import (
    Routine,
    WorkoutLog,
    routine_from_dict,
    routine_to_dict,
    workout_log_from_dict,
    workout_log_to_dict,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectionKind(StrEnum):
    REMINDERS = "reminders"
    NOTES = "notes"
    ROUTINES = "routines"
    WORKOUT_LOGS = "workout_logs"


def collection_key(kind: CollectionKind, user_id: str) -> str:
    return f"{kind.value}_{user_id}"


class CollectionStore:
    """
    Per-user JSON collections on top of a flat key-value storage.

    Each (kind, user_id) pair maps to one JSON array; a save replaces the whole
    array. Failures never propagate: reads fall back to the last copy that was
    read or written successfully in this process (or an empty list), writes
    report False and leave the in-memory state authoritative.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._last_good: dict[str, list[dict[str, Any]]] = {}

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def load(self, kind: CollectionKind, user_id: str) -> list[dict[str, Any]]:
        key = collection_key(kind, user_id)
        try:
            raw = self._storage.get_item(key)
        except StorageFailure:
            logger.exception("Collection read failed key=%s; using last known good copy", key)
            return list(self._last_good.get(key, []))

        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.error("Collection key=%s holds corrupt JSON; using last known good copy", key)
            return list(self._last_good.get(key, []))

        if not isinstance(data, list):
            logger.error("Collection key=%s is not a JSON array; using last known good copy", key)
            return list(self._last_good.get(key, []))

        items = [x for x in data if isinstance(x, dict)]
        self._last_good[key] = items
        return list(items)

    def save(self, kind: CollectionKind, user_id: str, items: Iterable[Mapping[str, Any]]) -> bool:
        key = collection_key(kind, user_id)
        payload = [dict(x) for x in items]
        try:
            self._storage.set_item(key, json.dumps(payload, ensure_ascii=False))
        except (StorageFailure, TypeError, ValueError):
            logger.exception("Collection write failed key=%s items=%d", key, len(payload))
            return False
        self._last_good[key] = payload
        logger.debug("Collection saved key=%s items=%d", key, len(payload))
        return True

    # ---- typed helpers ----

    def _load_typed(
        self, kind: CollectionKind, user_id: str, decode: Callable[[Mapping[str, Any]], T]
    ) -> list[T]:
        out: list[T] = []
        for raw in self.load(kind, user_id):
            try:
                out.append(decode(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed %s record id=%r", kind.value, raw.get("id"))
        return out

    def load_tasks(self, user_id: str) -> list[Task]:
        return self._load_typed(CollectionKind.REMINDERS, user_id, task_from_dict)

    def save_tasks(self, user_id: str, tasks: Iterable[Task]) -> bool:
        return self.save(CollectionKind.REMINDERS, user_id, [task_to_dict(t) for t in tasks])

    def load_notes(self, user_id: str) -> list[Note]:
        return self._load_typed(CollectionKind.NOTES, user_id, note_from_dict)

    def save_notes(self, user_id: str, notes: Iterable[Note]) -> bool:
        return self.save(CollectionKind.NOTES, user_id, [note_to_dict(n) for n in notes])

    def load_routines(self, user_id: str) -> list[Routine]:
        return self._load_typed(CollectionKind.ROUTINES, user_id, routine_from_dict)

    def save_routines(self, user_id: str, routines: Iterable[Routine]) -> bool:
        return self.save(CollectionKind.ROUTINES, user_id, [routine_to_dict(r) for r in routines])

    def load_workout_logs(self, user_id: str) -> list[WorkoutLog]:
        return self._load_typed(CollectionKind.WORKOUT_LOGS, user_id, workout_log_from_dict)

    def save_workout_logs(self, user_id: str, logs: Iterable[WorkoutLog]) -> bool:
        return self.save(
            CollectionKind.WORKOUT_LOGS, user_id, [workout_log_to_dict(x) for x in logs]
        )
