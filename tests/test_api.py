# tests/test_api.py

from __future__ import annotations

from pathlib import Path

import pytest

from lumina import api
from lumina.cli.bootstrap import create_initial_state
from lumina.core.effects import LevelUp, SetCompleted
from lumina.errors import BackupFormatError, PlanRequiredError
from lumina.notes.board import add_note
from lumina.tasks.task_models import RepeatType, TaskDraft, TaskStatus
from lumina.users.user_repository import DEMO_EMAIL, DEMO_PASSWORD
from lumina.workouts.routines import import_recommended

from .fakes import EffectRecorder, RecordingConfirm


def test_login_loads_empty_collections(demo) -> None:
    assert demo.user is not None and demo.user.email == DEMO_EMAIL
    assert demo.engine.tasks == []
    assert demo.notes == [] and demo.routines == [] and demo.workout_logs == []


def test_wrong_password_keeps_state_logged_out(state) -> None:
    assert api.login(state, DEMO_EMAIL, "nope") is None
    assert state.user is None


def test_free_plan_completion_earns_no_xp(demo) -> None:
    task = demo.engine.create(TaskDraft(title="Free work"))
    result = api.toggle_task(demo, task.id)

    assert result is not None and result.task.is_completed
    assert demo.user.xp == 0
    assert demo.users.get_user(demo.user.id).xp == 0


def test_paid_completion_earns_xp_and_levels_up(pro) -> None:
    levels = EffectRecorder()
    pro.dispatcher.register(LevelUp, levels)

    first = pro.engine.create(TaskDraft(title="one"))
    second = pro.engine.create(TaskDraft(title="two"))
    api.toggle_task(pro, first.id)
    assert pro.user.xp == 50 and pro.user.level == 1

    api.set_task_status(pro, second.id, TaskStatus.DONE)
    assert pro.user.xp == 100 and pro.user.level == 2
    assert levels.seen == [LevelUp(user_id=pro.user.id, level=2)]
    assert pro.users.get_user(pro.user.id).xp == 100


def test_uncomplete_keeps_xp_and_next_occurrence(pro) -> None:
    task = pro.engine.create(TaskDraft(title="Vitamins", repeat_type=RepeatType.DAILY))

    api.toggle_task(pro, task.id)
    api.toggle_task(pro, task.id)

    assert pro.user.xp == 50
    assert len(pro.engine.tasks) == 2
    assert not pro.engine.get(task.id).is_completed


def test_task_changes_are_persisted_per_user(demo) -> None:
    task = demo.engine.create(TaskDraft(title="Laundry", repeat_type=RepeatType.WEEKLY))
    api.toggle_task(demo, task.id)

    stored = demo.collections.load_tasks(demo.user.id)
    assert [t.title for t in stored] == ["Laundry", "Laundry"]
    assert [t.is_completed for t in stored] == [True, False]


def test_logout_then_login_reloads_data(demo) -> None:
    demo.engine.create(TaskDraft(title="Keep me"))
    user_id = demo.user.id

    api.logout(demo)
    assert demo.user is None and demo.engine.tasks == []
    assert demo.users.active_session() is None

    api.login(demo, DEMO_EMAIL, DEMO_PASSWORD)
    assert demo.user.id == user_id
    assert [t.title for t in demo.engine.tasks] == ["Keep me"]


def test_users_do_not_see_each_other(demo) -> None:
    demo.engine.create(TaskDraft(title="Demo only"))

    other = api.register(demo, "Ada", "ada@example.com", "pw")

    assert demo.user == other
    assert demo.engine.tasks == []


def test_restore_session_in_a_new_process(demo, settings, storage, clock, ids) -> None:
    demo.engine.create(TaskDraft(title="Persisted"))

    fresh = create_initial_state(
        settings=settings, storage=storage, clock=clock, id_factory=ids, bcrypt_rounds=4
    )
    user = api.restore_session(fresh)

    assert user is not None and user.email == DEMO_EMAIL
    assert [t.title for t in fresh.engine.tasks] == ["Persisted"]


def test_smart_input_is_reserved_for_paid_plans(demo) -> None:
    with pytest.raises(PlanRequiredError):
        api.add_smart_task(demo, "Buy milk !high tomorrow")
    assert demo.engine.tasks == []


def test_smart_input_creates_task(pro) -> None:
    task = api.add_smart_task(pro, "Buy milk !high tomorrow")

    assert task is not None
    assert task.title == "Buy milk"
    assert task.priority.value == "High"
    assert task.due_at.date() > pro.clock.now().date()
    assert api.add_smart_task(pro, "   ") is None


def test_logged_out_helpers_refuse(state) -> None:
    with pytest.raises(PermissionError):
        api.add_smart_task(state, "anything")


def test_delete_asks_for_confirmation(demo) -> None:
    task = demo.engine.create(TaskDraft(title="Tax return"))
    gate: RecordingConfirm = demo.confirm

    gate.answer = False
    assert api.delete_task(demo, task.id) is False
    assert demo.engine.get(task.id) is not None
    assert "Tax return" in gate.prompts[-1]

    gate.answer = True
    assert api.delete_task(demo, task.id) is True
    assert api.delete_task(demo, task.id) is False
    assert demo.collections.load_tasks(demo.user.id) == []


def test_notes_are_persisted_and_cleared(demo) -> None:
    api.set_notes(demo, add_note(demo.notes, "n1", content="idea"))
    assert [n.content for n in demo.collections.load_notes(demo.user.id)] == ["idea"]

    assert api.clear_notes(demo) is True
    assert demo.notes == []
    assert demo.collections.load_notes(demo.user.id) == []


def test_workout_flow_logs_newest_first(demo) -> None:
    sets = EffectRecorder()
    demo.dispatcher.register(SetCompleted, sets)
    api.set_routines(demo, import_recommended(demo.routines, "morning", demo.id_factory))
    routine = demo.routines[0]

    for _ in range(2):
        session = api.start_workout(demo, routine.id)
        assert session is not None
        assert api.toggle_workout_set(demo, 0, 0) is True
        demo.clock.advance(minutes=20)
        api.finish_workout(demo)

    assert [e.exercise_name for e in sets.seen] == ["Neck Rolls", "Neck Rolls"]
    assert demo.workout is None
    logs = demo.collections.load_workout_logs(demo.user.id)
    assert len(logs) == 2
    assert logs[0].date > logs[1].date
    assert logs[0].duration_seconds == 20 * 60
    assert api.start_workout(demo, "missing") is None


def test_cancel_workout_respects_gate(demo) -> None:
    api.set_routines(demo, import_recommended(demo.routines, "upper", demo.id_factory))
    api.start_workout(demo, demo.routines[0].id)

    demo.confirm.answer = False
    assert api.cancel_workout(demo) is False
    assert demo.workout is not None

    demo.confirm.answer = True
    assert api.cancel_workout(demo) is True
    assert demo.workout is None
    assert demo.collections.load_workout_logs(demo.user.id) == []


def test_backup_export_and_import(demo, tmp_path: Path) -> None:
    demo.engine.create(TaskDraft(title="Backed up"))
    api.set_notes(demo, add_note([], "n1", content="note"))

    path = api.export_user_backup(demo, tmp_path / "backup.json")
    demo.engine.clear()
    api.set_notes(demo, [])

    assert api.import_user_backup(demo, path) == (1, 1)
    assert [t.title for t in demo.engine.tasks] == ["Backed up"]
    assert [n.content for n in demo.collections.load_notes(demo.user.id)] == ["note"]


def test_import_rejects_garbage(demo, tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("definitely not json", "utf-8")
    with pytest.raises(BackupFormatError):
        api.import_user_backup(demo, bad)


def test_factory_reset(demo, storage) -> None:
    demo.engine.create(TaskDraft(title="gone soon"))

    demo.confirm.answer = False
    assert api.factory_reset(demo) is False
    assert demo.user is not None and storage.data

    demo.confirm.answer = True
    assert api.factory_reset(demo) is True
    assert demo.user is None
    assert storage.data == {}
