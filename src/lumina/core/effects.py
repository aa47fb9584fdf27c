# src/lumina/core/effects.py

from __future__ import annotations

"""
Effect values and their dispatcher.

Engine code never plays sounds or shows notifications itself. It returns effect
values describing what should happen; a dispatcher owned by the connector runs
the registered handlers.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class XpAward:
    """Request to credit XP to the owning user (plan gate applied by the calculator)."""
    amount: int


@dataclass(slots=True, frozen=True)
class LevelUp:
    user_id: str
    level: int


@dataclass(slots=True, frozen=True)
class TaskDue:
    task_id: str
    title: str
    priority: str


@dataclass(slots=True, frozen=True)
class SetCompleted:
    exercise_name: str
    set_index: int


Effect = XpAward | LevelUp | TaskDue | SetCompleted
EffectHandler = Callable[[Any], None]


class EffectDispatcher:
    """Routes effect values to handlers registered per effect type."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[EffectHandler]] = {}

    def register(self, effect_type: type, handler: EffectHandler) -> None:
        self._handlers.setdefault(effect_type, []).append(handler)

    def dispatch(self, effects: Iterable[Effect]) -> int:
        """
        Run handlers for each effect, in order.

        A failing handler is logged and skipped; the remaining handlers still run.
        Returns the number of handler invocations that succeeded.
        """
        ok = 0
        for effect in effects:
            handlers = self._handlers.get(type(effect), [])
            if not handlers:
                logger.debug("No handler for effect %r", effect)
                continue
            for handler in handlers:
                try:
                    handler(effect)
                    ok += 1
                except Exception:
                    logger.exception("Effect handler failed effect=%r", effect)
        return ok
