# src/lumina/backup.py

from __future__ import annotations

"""
JSON backup of a user's tasks and notes.

Format: {"reminders": [...], "notes": [...], "exportedAt": "<ISO>"}.
On import each section replaces the current collection only when present and a list;
individual malformed records are skipped.
"""

import json
import logging
import os
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import BackupFormatError
from .notes.note_models import Note, note_from_dict, note_to_dict
from .tasks.task_models import Task, task_from_dict, task_to_dict

logger = logging.getLogger(__name__)


def export_backup(tasks: Iterable[Task], notes: Iterable[Note], now: datetime) -> dict[str, Any]:
    return {
        "reminders": [task_to_dict(t) for t in tasks],
        "notes": [note_to_dict(n) for n in notes],
        "exportedAt": now.isoformat(),
    }


def backup_filename(now: datetime) -> str:
    return f"lumina-backup-{now.date().isoformat()}.json"


def write_backup(path: str | Path, payload: dict[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    logger.info("Backup written to %s", path)
    return path


def parse_backup(text: str) -> tuple[list[Task] | None, list[Note] | None]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise BackupFormatError(f"backup is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise BackupFormatError("backup must be a JSON object")

    tasks: list[Task] | None = None
    raw_tasks = data.get("reminders")
    if isinstance(raw_tasks, list):
        tasks = []
        for raw in raw_tasks:
            try:
                tasks.append(task_from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task in backup")

    notes: list[Note] | None = None
    raw_notes = data.get("notes")
    if isinstance(raw_notes, list):
        notes = []
        for raw in raw_notes:
            try:
                notes.append(note_from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed note in backup")

    return tasks, notes


def read_backup(path: str | Path) -> tuple[list[Task] | None, list[Note] | None]:
    try:
        text = Path(path).read_text("utf-8")
    except OSError as e:
        raise BackupFormatError(f"cannot read backup {path}: {e}") from e
    return parse_backup(text)
