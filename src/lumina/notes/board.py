# src/lumina/notes/board.py

from __future__ import annotations

"""Sticky-note board operations. Each function returns a new list."""

from dataclasses import replace

from .note_models import NOTE_COLORS, Note

DEFAULT_SIZE = 200
_CASCADE_STEP = 24
_CASCADE_SLOTS = 8


def _top_z(notes: list[Note]) -> int:
    return max([0, *(n.z_index for n in notes)])


def add_note(notes: list[Note], note_id: str, *, color_index: int = 0, content: str = "") -> list[Note]:
    """New note on top of the stack, cascaded so consecutive notes do not overlap exactly."""
    slot = len(notes) % _CASCADE_SLOTS
    note = Note(
        id=note_id,
        content=content,
        x=40 + slot * _CASCADE_STEP,
        y=40 + slot * _CASCADE_STEP,
        width=DEFAULT_SIZE,
        height=DEFAULT_SIZE,
        color=NOTE_COLORS[color_index % len(NOTE_COLORS)],
        z_index=_top_z(notes) + 1,
    )
    return [*notes, note]


def update_content(notes: list[Note], note_id: str, content: str) -> list[Note]:
    return [replace(n, content=content) if n.id == note_id else n for n in notes]


def remove_note(notes: list[Note], note_id: str) -> list[Note]:
    return [n for n in notes if n.id != note_id]


def clear_all(notes: list[Note]) -> list[Note]:
    return []


def toggle_minimize(notes: list[Note], note_id: str) -> list[Note]:
    return [replace(n, is_minimized=not n.is_minimized) if n.id == note_id else n for n in notes]


def bring_to_front(notes: list[Note], note_id: str) -> list[Note]:
    top = _top_z(notes)
    return [replace(n, z_index=top + 1) if n.id == note_id else n for n in notes]


def stacking_order(notes: list[Note]) -> list[Note]:
    """Bottom to top."""
    return sorted(notes, key=lambda n: n.z_index)
