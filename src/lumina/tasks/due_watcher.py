# src/lumina/tasks/due_watcher.py

from __future__ import annotations

"""
Due-task watcher.

A small polling loop that:
- reads the current task list (read-only),
- finds open tasks whose due time has just passed,
- hands TaskDue effects to the dispatcher (toast / sound / notification).

It never mutates tasks. Each task is reported once per due instant, so a task
edited to a new due time can fire again.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.effects import EffectDispatcher, TaskDue
from ..core.ports import Clock
from .task_models import Task

logger = logging.getLogger(__name__)


class DueWatcher:
    def __init__(self, *, window_seconds: float = 60.0) -> None:
        self._window = timedelta(seconds=max(1.0, float(window_seconds)))
        self._notified: set[tuple[str, float]] = set()

    def poll(self, tasks: Iterable[Task], now: datetime) -> list[TaskDue]:
        """Open tasks with due time in (now - window, now] that were not reported yet."""
        out: list[TaskDue] = []
        live: set[tuple[str, float]] = set()
        for t in tasks:
            if t.is_completed:
                continue
            key = (t.id, t.due_at.timestamp())
            live.add(key)
            if not (now - self._window < t.due_at <= now):
                continue
            if key in self._notified:
                continue
            self._notified.add(key)
            out.append(TaskDue(task_id=t.id, title=t.title, priority=t.priority.value))
        # Forget tasks that were deleted, completed or rescheduled.
        self._notified &= live
        return out


async def run_due_watcher(
    get_tasks: Callable[[], list[Task]],
    dispatcher: EffectDispatcher,
    *,
    clock: Clock,
    interval_seconds: float = 10.0,
    window_seconds: float = 60.0,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds:
    - snapshot tasks via get_tasks()
    - compute newly due tasks
    - dispatch TaskDue effects

    To stop, cancel the coroutine/task or set stop_event.
    """
    sleep_s = max(0.01, float(interval_seconds))
    watcher = DueWatcher(window_seconds=window_seconds)

    while stop_event is None or not stop_event.is_set():
        try:
            due = watcher.poll(get_tasks(), clock.now())
        except Exception:
            logger.exception("due poll failed")
            due = []

        if due:
            logger.info("Due tasks: %s", ", ".join(d.task_id for d in due))
            dispatcher.dispatch(due)

        if stop_event is None:
            await asyncio.sleep(sleep_s)
        else:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)


@dataclass(slots=True)
class DueWatcherRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal due watcher stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_due_watcher_in_background(
    get_tasks: Callable[[], list[Task]],
    dispatcher: EffectDispatcher,
    *,
    clock: Clock,
    interval_seconds: float = 10.0,
    window_seconds: float = 60.0,
) -> DueWatcherRunner | None:
    """
    Run the watcher on its own event loop in a daemon thread
    (the console REPL blocks on input()).
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_due_watcher(
                    get_tasks,
                    dispatcher,
                    clock=clock,
                    interval_seconds=interval_seconds,
                    window_seconds=window_seconds,
                    stop_event=stop_event,
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="lumina-due-watcher", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Due watcher thread did not initialize properly.")
        return None

    logger.info("Due watcher started (interval=%.1fs).", interval_seconds)
    return DueWatcherRunner(thread=t, loop=loop, stop_event=stop_event)
