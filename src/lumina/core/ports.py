# src/lumina/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage, time, id generation and prompts swappable and makes testing easier.
"""

import secrets
import string
from datetime import datetime
from typing import Protocol

_ID_ALPHABET = string.ascii_lowercase + string.digits


class KeyValueStorage(Protocol):
    """
    Flat string -> string storage (localStorage-like).

    Implementations raise StorageFailure on any read/write problem.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...
    def clear(self) -> None: ...
    def keys(self) -> list[str]: ...
    def total_size(self) -> int: ...


class Clock(Protocol):
    """Current-time source. Must return timezone-aware datetimes."""
    def now(self) -> datetime: ...


class IdFactory(Protocol):
    """Unique id generator (format-agnostic, unique within a collection)."""
    def __call__(self) -> str: ...


class ConfirmGate(Protocol):
    """Asked before destructive operations; returns True to proceed."""
    def confirm(self, prompt: str) -> bool: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()


def generate_id(length: int = 9) -> str:
    """Short random base36 id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(max(4, int(length))))


class AlwaysConfirm:
    """Non-interactive gate (scripts, tests)."""

    def confirm(self, prompt: str) -> bool:
        return True
