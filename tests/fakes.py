# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from lumina.errors import StorageFailure


class InMemoryKeyValueStore:
    """
    Dict-backed KeyValueStorage.

    Set `fail_reads` / `fail_writes` to make the next calls raise StorageFailure,
    which is how quota errors and locked databases look to the rest of the app.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[str] = []

    def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageFailure(f"read failed key={key}")
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageFailure(f"quota exceeded key={key}")
        self.data[key] = value
        self.writes.append(key)

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise StorageFailure(f"delete failed key={key}")
        self.data.pop(key, None)

    def clear(self) -> None:
        if self.fail_writes:
            raise StorageFailure("clear failed")
        self.data.clear()

    def keys(self) -> list[str]:
        if self.fail_reads:
            raise StorageFailure("key listing failed")
        return sorted(self.data)

    def total_size(self) -> int:
        if self.fail_reads:
            raise StorageFailure("size query failed")
        return sum(len(k) + len(v) for k, v in self.data.items())


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class SequentialIds:
    """Deterministic ids: id1, id2, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}{self.n}"


@dataclass(slots=True)
class RecordingConfirm:
    """ConfirmGate that answers `answer` and remembers every prompt."""

    answer: bool = True
    prompts: list[str] = field(default_factory=list)

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


@dataclass(slots=True)
class EffectRecorder:
    """Handler to register on an EffectDispatcher for any effect type."""

    seen: list[Any] = field(default_factory=list)

    def __call__(self, effect: Any) -> None:
        self.seen.append(effect)
