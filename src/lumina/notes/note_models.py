# src/lumina/notes/note_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

NOTE_COLORS = ("yellow", "pink", "blue", "green", "purple")


@dataclass(slots=True)
class Note:
    id: str
    content: str
    x: int
    y: int
    width: int
    height: int
    color: str
    z_index: int
    is_minimized: bool = False


def note_to_dict(n: Note) -> dict[str, Any]:
    return {
        "id": n.id,
        "content": n.content,
        "x": n.x,
        "y": n.y,
        "width": n.width,
        "height": n.height,
        "color": n.color,
        "zIndex": n.z_index,
        "isMinimized": n.is_minimized,
    }


def note_from_dict(d: Mapping[str, Any]) -> Note:
    note_id = str(d["id"]).strip()
    if not note_id:
        raise ValueError("note id is empty")
    return Note(
        id=note_id,
        content=str(d.get("content") or ""),
        x=int(d.get("x") or 0),
        y=int(d.get("y") or 0),
        width=int(d.get("width") or 200),
        height=int(d.get("height") or 200),
        color=str(d.get("color") or NOTE_COLORS[0]),
        z_index=int(d.get("zIndex") or 0),
        is_minimized=bool(d.get("isMinimized", False)),
    )
