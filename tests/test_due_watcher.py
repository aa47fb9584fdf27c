# tests/test_due_watcher.py

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from lumina.core.effects import EffectDispatcher, TaskDue
from lumina.tasks.due_watcher import DueWatcher, run_due_watcher
from lumina.tasks.engine import TaskEngine
from lumina.tasks.task_models import Priority, TaskDraft, TaskPatch

from .fakes import EffectRecorder


def test_poll_reports_each_due_task_once(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    task = engine.create(TaskDraft(title="Call", priority=Priority.HIGH, due_at=clock.now()))
    watcher = DueWatcher(window_seconds=60)

    first = watcher.poll(engine.tasks, clock.advance(seconds=5))
    second = watcher.poll(engine.tasks, clock.advance(seconds=5))

    assert first == [TaskDue(task_id=task.id, title="Call", priority="High")]
    assert second == []


def test_poll_ignores_future_stale_and_completed(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    now = clock.now()
    engine.create(TaskDraft(title="future", due_at=now + timedelta(minutes=5)))
    engine.create(TaskDraft(title="stale", due_at=now - timedelta(minutes=5)))
    done = engine.create(TaskDraft(title="done", due_at=now))
    engine.toggle_complete(done.id)

    assert DueWatcher(window_seconds=60).poll(engine.tasks, now) == []


def test_rescheduled_task_fires_again(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    task = engine.create(TaskDraft(title="Stretch", due_at=clock.now()))
    watcher = DueWatcher(window_seconds=60)
    assert len(watcher.poll(engine.tasks, clock.now())) == 1

    new_due = clock.now() + timedelta(minutes=10)
    engine.edit(task.id, TaskPatch(due_at=new_due))
    assert watcher.poll(engine.tasks, clock.advance(minutes=5)) == []
    assert [d.task_id for d in watcher.poll(engine.tasks, clock.advance(minutes=5))] == [task.id]


@pytest.mark.asyncio
async def test_run_due_watcher_dispatches_until_stopped(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    engine.create(TaskDraft(title="ping", due_at=clock.now()))

    dispatcher = EffectDispatcher()
    recorder = EffectRecorder()
    dispatcher.register(TaskDue, recorder)
    stop = asyncio.Event()

    runner = asyncio.create_task(
        run_due_watcher(
            lambda: engine.tasks,
            dispatcher,
            clock=clock,
            interval_seconds=0.01,
            window_seconds=60,
            stop_event=stop,
        )
    )

    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(runner, timeout=1.0)

    assert [e.title for e in recorder.seen] == ["ping"]
    assert engine.tasks[0].is_completed is False
