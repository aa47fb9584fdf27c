# tests/test_notes_board.py

from __future__ import annotations

from lumina.notes import board
from lumina.notes.note_models import NOTE_COLORS, note_from_dict, note_to_dict


def test_new_notes_stack_on_top_and_cascade() -> None:
    notes = board.add_note([], "a")
    notes = board.add_note(notes, "b", color_index=2, content="todo")

    a, b = notes
    assert (a.z_index, b.z_index) == (1, 2)
    assert (b.x, b.y) != (a.x, a.y)
    assert b.color == NOTE_COLORS[2]
    assert b.content == "todo"


def test_bring_to_front_and_stacking_order() -> None:
    notes = board.add_note(board.add_note(board.add_note([], "a"), "b"), "c")
    notes = board.bring_to_front(notes, "a")
    assert [n.id for n in board.stacking_order(notes)] == ["b", "c", "a"]


def test_edit_minimize_remove_are_pure() -> None:
    original = board.add_note([], "a", content="draft")
    edited = board.update_content(original, "a", "final")
    minimized = board.toggle_minimize(edited, "a")

    assert original[0].content == "draft"
    assert edited[0].content == "final" and not edited[0].is_minimized
    assert minimized[0].is_minimized
    assert board.remove_note(minimized, "a") == []
    assert board.remove_note(minimized, "zzz") == minimized
    assert board.clear_all(minimized) == []


def test_note_json_shape() -> None:
    note = board.add_note([], "n1", content="hi")[0]
    raw = note_to_dict(note)
    assert raw["zIndex"] == 1 and raw["isMinimized"] is False
    assert note_from_dict(raw) == note
