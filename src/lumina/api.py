# src/lumina/api.py

from __future__ import annotations

"""
High-level helpers over AppState used by connectors (console REPL, scripts).

This is where engine results meet the rest of the app: XP awards go through the
user repository, other effects go to the dispatcher, and every collection change
is handed to the debounced saver.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from .admin import factory_reset as _factory_reset
from .backup import export_backup, read_backup, write_backup
from .core.effects import Effect, XpAward
from .core.state import AppState
from .errors import PlanRequiredError
from .notes.board import clear_all
from .notes.note_models import Note, note_to_dict
from .storage.collection_store import CollectionKind, collection_key
from .tasks.engine import TransitionResult
from .tasks.smart_input import parse_smart_task
from .tasks.task_models import Task, TaskStatus, task_to_dict
from .users.user_models import PlanTier, Theme, User
from .workouts.routines import delete_routine as _delete_routine
from .workouts.session import WorkoutSession
from .workouts.workout_models import Routine, WorkoutLog, routine_to_dict, workout_log_to_dict

logger = logging.getLogger(__name__)


def require_user(state: AppState) -> User:
    if state.user is None:
        raise PermissionError("not logged in")
    return state.user


# ---- persistence wiring ----


def _persist(state: AppState, kind: CollectionKind, items: list[dict]) -> None:
    user = state.user
    if user is None:
        return
    state.saver.submit(collection_key(kind, user.id), (kind, user.id, items))


def persist_tasks(state: AppState, tasks: Iterable[Task]) -> None:
    _persist(state, CollectionKind.REMINDERS, [task_to_dict(t) for t in tasks])


def persist_notes(state: AppState) -> None:
    _persist(state, CollectionKind.NOTES, [note_to_dict(n) for n in state.notes])


def persist_routines(state: AppState) -> None:
    _persist(state, CollectionKind.ROUTINES, [routine_to_dict(r) for r in state.routines])


def persist_workout_logs(state: AppState) -> None:
    _persist(state, CollectionKind.WORKOUT_LOGS, [workout_log_to_dict(x) for x in state.workout_logs])


# ---- session ----


def load_user_data(state: AppState, user: User) -> None:
    """Make `user` the active user: load all four collections and hook up persistence."""
    unload_user_data(state)
    state.user = user
    state.engine.load(state.collections.load_tasks(user.id))
    state.notes = state.collections.load_notes(user.id)
    state.routines = state.collections.load_routines(user.id)
    state.workout_logs = state.collections.load_workout_logs(user.id)
    state.engine.on_change = lambda tasks: persist_tasks(state, tasks)
    logger.info(
        "Loaded data for user=%s tasks=%d notes=%d routines=%d logs=%d",
        user.id,
        len(state.engine.tasks),
        len(state.notes),
        len(state.routines),
        len(state.workout_logs),
    )


def unload_user_data(state: AppState) -> None:
    """Flush pending writes of the current user, then forget their data."""
    state.saver.flush()
    state.engine.on_change = None
    state.engine.load([])
    state.notes = []
    state.routines = []
    state.workout_logs = []
    state.workout = None
    state.user = None


def login(state: AppState, email: str, password: str) -> User | None:
    user = state.users.login(email, password)
    if user is not None:
        load_user_data(state, user)
    return user


def register(state: AppState, name: str, email: str, password: str) -> User:
    state.users.register(name, email, password)
    user = state.users.login(email, password)
    if user is None:  # pragma: no cover - register just stored these credentials
        raise RuntimeError("login after registration failed")
    load_user_data(state, user)
    return user


def logout(state: AppState) -> None:
    unload_user_data(state)
    state.users.logout()


def restore_session(state: AppState) -> User | None:
    """Startup: pick up the stored session (fresh copy of the user record) if any."""
    user = state.users.refresh_session()
    if user is not None:
        load_user_data(state, user)
    return user


def _refresh_user(state: AppState, user: User | None) -> User | None:
    if user is not None:
        state.user = user
    return user


def upgrade_plan(state: AppState, plan: PlanTier) -> User | None:
    return _refresh_user(state, state.users.upgrade_plan(require_user(state).id, plan))


def set_theme(state: AppState, theme: Theme) -> User | None:
    return _refresh_user(state, state.users.set_theme(require_user(state).id, theme))


def complete_onboarding(state: AppState) -> User | None:
    return _refresh_user(state, state.users.complete_onboarding(require_user(state).id))


# ---- effects ----


def apply_effects(state: AppState, effects: Iterable[Effect]) -> list[Effect]:
    """
    Resolve XpAward against the active user (plan gate, level-up) and dispatch the rest.
    Returns the effects that were dispatched.
    """
    dispatched: list[Effect] = []
    for effect in effects:
        if isinstance(effect, XpAward):
            if state.user is None:
                continue
            outcome = state.users.apply_xp(state.user.id, effect.amount)
            if outcome is None:
                continue
            state.user = outcome.user
            dispatched.extend(outcome.effects)
        else:
            dispatched.append(effect)
    if dispatched:
        state.dispatcher.dispatch(dispatched)
    return dispatched


# ---- tasks ----


def toggle_task(state: AppState, task_id: str) -> TransitionResult | None:
    result = state.engine.toggle_complete(task_id)
    if result is not None:
        apply_effects(state, result.effects)
    return result


def set_task_status(state: AppState, task_id: str, status: TaskStatus) -> TransitionResult | None:
    result = state.engine.change_status(task_id, status)
    if result is not None:
        apply_effects(state, result.effects)
    return result


def delete_task(state: AppState, task_id: str) -> bool:
    task = state.engine.get(task_id)
    if task is None:
        return False
    if not state.confirm.confirm(f"Delete task '{task.title}'?"):
        return False
    return state.engine.delete(task_id)


def add_smart_task(state: AppState, text: str) -> Task | None:
    """Quick entry. Paid plans only; blank input creates nothing."""
    user = require_user(state)
    if user.plan == PlanTier.FREE:
        raise PlanRequiredError("smart input is available on Standard and Pro plans")
    if not text.strip():
        return None
    draft = parse_smart_task(text, state.clock.now())
    return state.engine.create(draft.to_draft())


# ---- notes ----


def set_notes(state: AppState, notes: list[Note]) -> None:
    state.notes = list(notes)
    persist_notes(state)


def clear_notes(state: AppState) -> bool:
    if not state.confirm.confirm("Clear all sticky notes?"):
        return False
    set_notes(state, clear_all(state.notes))
    return True


# ---- workouts ----


def set_routines(state: AppState, routines: list[Routine]) -> None:
    state.routines = list(routines)
    persist_routines(state)


def remove_routine(state: AppState, routine_id: str) -> bool:
    if not any(r.id == routine_id for r in state.routines):
        return False
    if not state.confirm.confirm("Delete this routine?"):
        return False
    set_routines(state, _delete_routine(state.routines, routine_id))
    return True


def start_workout(state: AppState, routine_id: str) -> WorkoutSession | None:
    routine = next((r for r in state.routines if r.id == routine_id), None)
    if routine is None:
        return None
    state.workout = WorkoutSession(routine, state.clock.now())
    logger.info("Workout started routine=%s", routine.name)
    return state.workout


def toggle_workout_set(state: AppState, exercise_index: int, set_index: int) -> bool:
    if state.workout is None:
        return False
    effects = state.workout.toggle_set(exercise_index, set_index)
    apply_effects(state, effects)
    return bool(effects)


def finish_workout(state: AppState) -> WorkoutLog | None:
    session = state.workout
    if session is None:
        return None
    log = session.finish(state.id_factory(), state.clock.now())
    state.workout_logs = [log, *state.workout_logs]
    state.workout = None
    persist_workout_logs(state)
    return log


def cancel_workout(state: AppState) -> bool:
    if state.workout is None:
        return False
    if not state.confirm.confirm("Are you sure? Current progress will be lost."):
        return False
    state.workout = None
    return True


# ---- backup ----


def export_user_backup(state: AppState, path: str | Path) -> Path:
    require_user(state)
    payload = export_backup(state.engine.tasks, state.notes, state.clock.now())
    return write_backup(path, payload)


def import_user_backup(state: AppState, path: str | Path) -> tuple[int | None, int | None]:
    """Returns (tasks imported, notes imported); None for a section absent from the file."""
    require_user(state)
    tasks, notes = read_backup(path)
    if tasks is not None:
        state.engine.replace_all(tasks)
    if notes is not None:
        set_notes(state, notes)
    return (None if tasks is None else len(tasks), None if notes is None else len(notes))


def flush(state: AppState) -> int:
    return state.saver.flush()


def factory_reset(state: AppState) -> bool:
    """Delete every account and collection on this machine (asks the confirm gate first)."""
    return _factory_reset(state.storage, state.confirm, before_clear=lambda: unload_user_data(state))
