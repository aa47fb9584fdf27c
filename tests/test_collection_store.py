# tests/test_collection_store.py

from __future__ import annotations

import json

from lumina.notes.board import add_note
from lumina.storage.collection_store import CollectionKind, CollectionStore, collection_key
from lumina.tasks.engine import TaskEngine
from lumina.tasks.task_models import RepeatType, TaskDraft, TaskStatus

from .fakes import InMemoryKeyValueStore


def test_keys_are_namespaced_per_kind_and_user() -> None:
    assert collection_key(CollectionKind.REMINDERS, "u1") == "reminders_u1"
    assert collection_key(CollectionKind.WORKOUT_LOGS, "u1") == "workout_logs_u1"


def test_tasks_survive_a_save_load_cycle(clock, ids) -> None:
    kv = InMemoryKeyValueStore()
    store = CollectionStore(kv)
    engine = TaskEngine(clock=clock, id_factory=ids)
    t = engine.create(TaskDraft(title="Gym", repeat_type=RepeatType.WEEKLY))
    engine.add_subtask(t.id, "shoes")
    engine.toggle_complete(t.id)

    assert store.save_tasks("u1", engine.tasks) is True
    raw = json.loads(kv.data["reminders_u1"])
    assert raw[0]["dueDateTime"] and raw[0]["status"] == "done" and raw[0]["isCompleted"] is True

    loaded = store.load_tasks("u1")
    assert loaded == engine.tasks
    assert store.load_tasks("someone-else") == []


def test_missing_status_is_derived_and_status_wins(clock) -> None:
    kv = InMemoryKeyValueStore()
    kv.data["reminders_u1"] = json.dumps(
        [
            {"id": "a", "title": "old", "dueDateTime": "2024-05-10T09:00:00Z", "isCompleted": True},
            {
                "id": "b",
                "title": "mixed",
                "dueDateTime": "2024-05-10T09:00:00+00:00",
                "isCompleted": True,
                "status": "in_progress",
            },
        ]
    )

    a, b = CollectionStore(kv).load_tasks("u1")

    assert a.status == TaskStatus.DONE and a.is_completed
    assert b.status == TaskStatus.IN_PROGRESS and not b.is_completed


def test_malformed_records_are_skipped() -> None:
    kv = InMemoryKeyValueStore()
    kv.data["reminders_u1"] = json.dumps(
        [
            {"id": "ok", "dueDateTime": "2024-05-10T09:00:00Z"},
            {"id": "bad-date", "dueDateTime": "not a date"},
            {"title": "no id", "dueDateTime": "2024-05-10T09:00:00Z"},
            "not an object",
        ]
    )
    assert [t.id for t in CollectionStore(kv).load_tasks("u1")] == ["ok"]


def test_corrupt_json_falls_back_to_last_good_copy() -> None:
    kv = InMemoryKeyValueStore()
    store = CollectionStore(kv)
    notes = add_note([], "n1", content="hello")
    assert store.save_notes("u1", notes)

    kv.data["notes_u1"] = "{not json"
    assert [n.id for n in store.load_notes("u1")] == ["n1"]

    kv.data["notes_u1"] = json.dumps({"id": "n1"})
    assert [n.id for n in store.load_notes("u1")] == ["n1"]

    assert CollectionStore(kv).load_notes("u1") == []


def test_storage_failures_are_contained() -> None:
    kv = InMemoryKeyValueStore()
    store = CollectionStore(kv)
    store.save(CollectionKind.ROUTINES, "u1", [{"id": "r1", "name": "Legs", "exercises": []}])

    kv.fail_writes = True
    assert store.save(CollectionKind.ROUTINES, "u1", []) is False

    kv.fail_reads = True
    assert [r.name for r in store.load_routines("u1")] == ["Legs"]
    assert store.load_workout_logs("u1") == []
