# src/lumina/users/user_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..tasks.task_models import _parse_enum


class PlanTier(StrEnum):
    FREE = "Free"
    STANDARD = "Standard"
    PRO = "Pro"

    @classmethod
    def parse(cls, raw: Any) -> PlanTier:
        return _parse_enum(cls, raw, cls.FREE)


class Theme(StrEnum):
    BLUE = "blue"
    PURPLE = "purple"
    EMERALD = "emerald"
    ROSE = "rose"

    @classmethod
    def parse(cls, raw: Any) -> Theme:
        return _parse_enum(cls, raw, cls.BLUE)


@dataclass(slots=True, frozen=True)
class User:
    id: str
    name: str
    email: str
    plan: PlanTier
    xp: int
    level: int
    theme: Theme
    has_seen_onboarding: bool
    created_at: int = 0  # epoch milliseconds


@dataclass(slots=True)
class UserPatch:
    """Profile fields a user (or the upgrade flow) may change. XP has its own path."""

    name: str | None = None
    plan: PlanTier | None = None
    theme: Theme | None = None
    has_seen_onboarding: bool | None = None


def user_to_dict(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "plan": u.plan.value,
        "xp": u.xp,
        "level": u.level,
        "theme": u.theme.value,
        "hasSeenOnboarding": u.has_seen_onboarding,
        "createdAt": u.created_at,
    }


def user_from_dict(d: Mapping[str, Any]) -> User:
    # Imported here: gamification imports User for its outcome type.
    from ..gamification import calculate_level

    xp = max(0, int(d.get("xp") or 0))
    return User(
        id=str(d["id"]),
        name=str(d.get("name") or ""),
        email=str(d.get("email") or ""),
        plan=PlanTier.parse(d.get("plan")),
        xp=xp,
        # Level is always derived; a stale stored level is ignored.
        level=calculate_level(xp),
        theme=Theme.parse(d.get("theme")),
        has_seen_onboarding=bool(d.get("hasSeenOnboarding", False)),
        created_at=int(d.get("createdAt") or 0),
    )
