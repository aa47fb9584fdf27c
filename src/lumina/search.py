# src/lumina/search.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .notes.note_models import Note
from .tasks.task_models import Task


@dataclass(slots=True)
class SearchResults:
    tasks: list[Task] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.tasks and not self.notes


def search(tasks: Iterable[Task], notes: Iterable[Note], query: str, *, limit: int = 5) -> SearchResults:
    """Case-insensitive substring search over task title/description and note content."""
    q = query.strip().lower()
    if not q:
        return SearchResults()
    limit = max(0, int(limit))
    hit_tasks = [t for t in tasks if q in t.title.lower() or q in t.description.lower()]
    hit_notes = [n for n in notes if q in n.content.lower()]
    return SearchResults(tasks=hit_tasks[:limit], notes=hit_notes[:limit])
