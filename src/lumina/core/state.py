# src/lumina/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..notes.note_models import Note
from ..storage.collection_store import CollectionStore
from ..storage.debounce import DebouncedSaver
from ..tasks.engine import TaskEngine
from ..users.user_models import User
from ..users.user_repository import UserRepository
from ..workouts.session import WorkoutSession
from ..workouts.workout_models import Routine, WorkoutLog
from .effects import EffectDispatcher
from .ports import Clock, ConfirmGate, IdFactory, KeyValueStorage


@dataclass
class AppState:
    """
    Everything one running app instance needs, wired once in cli/bootstrap.py.

    The engine owns the task list; notes/routines/logs are plain lists replaced
    wholesale by the helpers in lumina.api. `lock` serializes the console and the
    background due watcher.
    """

    settings: Any

    storage: KeyValueStorage
    collections: CollectionStore
    users: UserRepository
    engine: TaskEngine
    dispatcher: EffectDispatcher
    saver: DebouncedSaver

    clock: Clock
    id_factory: IdFactory
    confirm: ConfirmGate

    user: User | None = None
    notes: list[Note] = field(default_factory=list)
    routines: list[Routine] = field(default_factory=list)
    workout_logs: list[WorkoutLog] = field(default_factory=list)
    workout: WorkoutSession | None = None

    lock: threading.RLock = field(default_factory=threading.RLock)
