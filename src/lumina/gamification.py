# src/lumina/gamification.py

from __future__ import annotations

"""
XP and levels.

Levels come from a fixed ascending threshold table: level N is reached at
LEVEL_THRESHOLDS[N - 1] XP. XP only ever grows; Free-plan users do not earn any.
"""

import logging
from dataclasses import dataclass, field, replace

from .core.effects import Effect, LevelUp
from .users.user_models import PlanTier, User

logger = logging.getLogger(__name__)

LEVEL_THRESHOLDS: tuple[int, ...] = (0, 100, 300, 600, 1000, 1500, 2100, 2800, 3600, 4500, 10000)


def calculate_level(xp: int) -> int:
    level = 1
    for i, threshold in enumerate(LEVEL_THRESHOLDS):
        if xp >= threshold:
            level = i + 1
        else:
            break
    return level


def next_level_xp(level: int) -> int:
    """XP needed to reach level + 1; the last threshold once the table runs out."""
    if level < 1:
        return LEVEL_THRESHOLDS[1]
    if level >= len(LEVEL_THRESHOLDS):
        return LEVEL_THRESHOLDS[-1]
    return LEVEL_THRESHOLDS[level]


def level_progress(xp: int, level: int) -> float:
    """Fill ratio for the dashboard XP bar (xp / next threshold, capped at 1)."""
    target = next_level_xp(level)
    if target <= 0:
        return 1.0
    return max(0.0, min(1.0, xp / target))


@dataclass(slots=True, frozen=True)
class XpOutcome:
    user: User
    awarded: int
    leveled_up: bool
    effects: list[Effect] = field(default_factory=list)


def award_xp(user: User, amount: int) -> XpOutcome:
    if user.plan == PlanTier.FREE:
        logger.debug("XP not awarded to free-plan user=%s", user.id)
        return XpOutcome(user=user, awarded=0, leveled_up=False)
    if amount <= 0:
        return XpOutcome(user=user, awarded=0, leveled_up=False)

    new_xp = user.xp + int(amount)
    new_level = calculate_level(new_xp)
    updated = replace(user, xp=new_xp, level=new_level)

    effects: list[Effect] = []
    leveled_up = new_level > user.level
    if leveled_up:
        effects.append(LevelUp(user_id=user.id, level=new_level))
        logger.info("User %s reached level %d", user.id, new_level)

    return XpOutcome(user=updated, awarded=int(amount), leveled_up=leveled_up, effects=effects)
