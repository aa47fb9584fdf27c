# tests/test_agenda_search.py

from __future__ import annotations

from datetime import date, timedelta

from lumina.agenda import agenda, month_grid, shift_month
from lumina.notes.board import add_note
from lumina.search import search
from lumina.tasks.engine import TaskEngine
from lumina.tasks.task_models import TaskDraft


def test_month_grid_is_sunday_first() -> None:
    # 1 May 2024 was a Wednesday.
    cells = month_grid(2024, 5)
    assert cells[:3] == [None, None, None]
    assert cells[3] == date(2024, 5, 1)
    assert cells[-1] == date(2024, 5, 31)

    # 1 September 2024 was a Sunday.
    assert month_grid(2024, 9)[0] == date(2024, 9, 1)


def test_shift_month_wraps_years() -> None:
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 5, 0) == (2024, 5)


def test_agenda_keeps_first_days_and_busy_days(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    engine.create(TaskDraft(title="soon", due_at=clock.now() + timedelta(days=5)))
    engine.create(TaskDraft(title="too far", due_at=clock.now() + timedelta(days=20)))
    today = clock.now().date()

    days = agenda(engine.tasks, today)

    assert [d.day for d in days] == [today + timedelta(days=i) for i in (0, 1, 2, 5)]
    assert days[0].tasks == []
    assert [t.title for t in days[-1].tasks] == ["soon"]


def test_search_matches_tasks_and_notes(clock, ids) -> None:
    engine = TaskEngine(clock=clock, id_factory=ids)
    engine.create(TaskDraft(title="Buy MILK"))
    engine.create(TaskDraft(title="Other", description="milk for the cat"))
    engine.create(TaskDraft(title="Unrelated"))
    notes = add_note([], "n1", content="almond milk recipe")

    results = search(engine.tasks, notes, "  Milk ")

    assert [t.title for t in results.tasks] == ["Buy MILK", "Other"]
    assert [n.id for n in results.notes] == ["n1"]
    assert search(engine.tasks, notes, "   ").is_empty()
    assert len(search(engine.tasks, notes, "milk", limit=1).tasks) == 1
