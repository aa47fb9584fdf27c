# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from lumina import api
from lumina.cli.bootstrap import create_initial_state
from lumina.core.state import AppState
from lumina.users.user_models import PlanTier
from lumina.users.user_repository import DEMO_EMAIL, DEMO_PASSWORD

from .fakes import FixedClock, InMemoryKeyValueStore, RecordingConfirm, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="lumina-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        store_path=tmp_path / "lumina.sqlite3",
        seed_demo_user=True,
        # Write-through: every change is in storage right away.
        persist_debounce_seconds=0.0,
        due_poll_interval_seconds=0.01,
        due_window_seconds=60.0,
        xp_per_completion=50,
        storage_quota_bytes=5 * 1024 * 1024,
    )


@pytest.fixture()
def clock() -> FixedClock:
    # Local-time aware so calendar bucketing matches the machine running the tests.
    return FixedClock(datetime(2024, 5, 10, 8, 0).astimezone())


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    storage: InMemoryKeyValueStore,
    clock: FixedClock,
    ids: SequentialIds,
) -> AppState:
    """AppState wired with deterministic fakes (cheap bcrypt rounds)."""
    return create_initial_state(
        settings=settings,
        storage=storage,
        clock=clock,
        id_factory=ids,
        confirm=RecordingConfirm(),
        bcrypt_rounds=4,
    )


@pytest.fixture()
def demo(state: AppState) -> AppState:
    """State with the seeded Free-plan demo user logged in."""
    assert api.login(state, DEMO_EMAIL, DEMO_PASSWORD) is not None
    return state


@pytest.fixture()
def pro(demo: AppState) -> AppState:
    """Demo user upgraded to Pro (earns XP, may use smart input)."""
    api.upgrade_plan(demo, PlanTier.PRO)
    return demo
