# src/lumina/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires storage, user repository, task engine, dispatcher and saver into AppState.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import get_settings
from ..core.effects import EffectDispatcher
from ..core.ports import AlwaysConfirm, Clock, ConfirmGate, IdFactory, KeyValueStorage, SystemClock, generate_id
from ..core.state import AppState
from ..storage.collection_store import CollectionStore
from ..storage.debounce import DebouncedSaver
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.engine import TaskEngine
from ..users.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    storage: KeyValueStorage | None = None,
    clock: Clock | None = None,
    id_factory: IdFactory | None = None,
    confirm: ConfirmGate | None = None,
    bcrypt_rounds: int = 12,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and collaborators injectable makes the app easier to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = SqliteKeyValueStore(settings.store_path)

    clock = clock or SystemClock()
    id_factory = id_factory or generate_id

    collections = CollectionStore(storage)

    def write(key: str, payload: Any) -> bool:
        kind, user_id, items = payload
        return collections.save(kind, user_id, items)

    state = AppState(
        settings=settings,
        storage=storage,
        collections=collections,
        users=UserRepository(
            storage,
            clock=clock,
            id_factory=id_factory,
            seed_demo_user=bool(getattr(settings, "seed_demo_user", True)),
            bcrypt_rounds=bcrypt_rounds,
        ),
        engine=TaskEngine(
            clock=clock,
            id_factory=id_factory,
            xp_per_completion=int(getattr(settings, "xp_per_completion", 50)),
        ),
        dispatcher=EffectDispatcher(),
        saver=DebouncedSaver(
            write, delay_seconds=float(getattr(settings, "persist_debounce_seconds", 0.5))
        ),
        clock=clock,
        id_factory=id_factory,
        confirm=confirm or AlwaysConfirm(),
    )
    logger.debug("AppState created (store=%s)", type(storage).__name__)
    return state
