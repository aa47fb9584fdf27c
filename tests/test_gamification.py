# tests/test_gamification.py

from __future__ import annotations

import pytest

from lumina.core.effects import LevelUp
from lumina.gamification import award_xp, calculate_level, level_progress, next_level_xp
from lumina.users.user_models import PlanTier, Theme, User


def _user(plan: PlanTier = PlanTier.PRO, xp: int = 0) -> User:
    return User(
        id="u1",
        name="Ada",
        email="ada@example.com",
        plan=plan,
        xp=xp,
        level=calculate_level(xp),
        theme=Theme.BLUE,
        has_seen_onboarding=True,
    )


@pytest.mark.parametrize(
    ("xp", "level"),
    [(0, 1), (99, 1), (100, 2), (299, 2), (300, 3), (4500, 10), (9999, 10), (10000, 11), (999999, 11)],
)
def test_calculate_level(xp: int, level: int) -> None:
    assert calculate_level(xp) == level


def test_next_level_xp() -> None:
    assert next_level_xp(1) == 100
    assert next_level_xp(2) == 300
    assert next_level_xp(10) == 10000
    assert next_level_xp(11) == 10000
    assert next_level_xp(0) == 100


def test_level_progress_is_capped() -> None:
    assert level_progress(50, 1) == pytest.approx(0.5)
    assert level_progress(20000, 11) == 1.0


def test_free_plan_earns_nothing() -> None:
    user = _user(PlanTier.FREE, xp=40)
    outcome = award_xp(user, 50)
    assert outcome.awarded == 0
    assert outcome.user == user
    assert outcome.effects == []


def test_paid_plan_levels_up() -> None:
    outcome = award_xp(_user(PlanTier.STANDARD, xp=90), 50)
    assert outcome.awarded == 50
    assert outcome.user.xp == 140
    assert outcome.user.level == 2
    assert outcome.leveled_up
    assert outcome.effects == [LevelUp(user_id="u1", level=2)]


def test_award_within_level_has_no_effect() -> None:
    outcome = award_xp(_user(xp=0), 50)
    assert outcome.user.xp == 50 and outcome.user.level == 1
    assert not outcome.leveled_up and outcome.effects == []


def test_non_positive_amount_is_ignored() -> None:
    user = _user(xp=10)
    assert award_xp(user, 0).user == user
    assert award_xp(user, -5).awarded == 0
