# tests/test_user_repository.py

from __future__ import annotations

import json

import pytest

from lumina.errors import DuplicateUserError, StorageFailure
from lumina.users.user_models import PlanTier, Theme, UserPatch
from lumina.users.user_repository import DEMO_EMAIL, DEMO_PASSWORD, SESSION_KEY, USERS_KEY, UserRepository

from .fakes import InMemoryKeyValueStore


@pytest.fixture()
def repo(storage, clock, ids) -> UserRepository:
    return UserRepository(storage, clock=clock, id_factory=ids, bcrypt_rounds=4)


def test_demo_user_is_seeded_once(repo, storage, clock, ids) -> None:
    UserRepository(storage, clock=clock, id_factory=ids, bcrypt_rounds=4)

    users = repo.list_users()
    assert [u.email for u in users] == [DEMO_EMAIL]
    assert users[0].plan == PlanTier.FREE


def test_seeding_can_be_disabled(clock, ids) -> None:
    repo = UserRepository(
        InMemoryKeyValueStore(), clock=clock, id_factory=ids, seed_demo_user=False, bcrypt_rounds=4
    )
    assert repo.list_users() == []


def test_register_hashes_password_and_rejects_duplicates(repo, storage) -> None:
    user = repo.register("Ada", "ada@example.com", "s3cret")

    assert user.plan == PlanTier.FREE and user.xp == 0 and user.level == 1
    record = next(r for r in json.loads(storage.data[USERS_KEY]) if r["id"] == user.id)
    assert record["passwordHash"] != "s3cret"

    with pytest.raises(DuplicateUserError):
        repo.register("Other", "ADA@example.com", "x")
    with pytest.raises(ValueError):
        repo.register("Nobody", "  ", "x")


def test_login_sets_session_and_logout_clears_it(repo, storage) -> None:
    assert repo.login(DEMO_EMAIL, "wrong") is None
    assert repo.active_session() is None

    user = repo.login(DEMO_EMAIL.upper(), DEMO_PASSWORD)
    assert user is not None
    assert repo.active_session() == user
    assert SESSION_KEY in storage.data

    repo.logout()
    assert repo.active_session() is None


def test_apply_xp_is_gated_by_plan_and_refreshes_session(repo) -> None:
    user = repo.login(DEMO_EMAIL, DEMO_PASSWORD)

    outcome = repo.apply_xp(user.id, 50)
    assert outcome is not None and outcome.awarded == 0
    assert repo.get_user(user.id).xp == 0

    repo.upgrade_plan(user.id, PlanTier.PRO)
    repo.apply_xp(user.id, 60)
    outcome = repo.apply_xp(user.id, 60)

    assert outcome.leveled_up
    assert repo.get_user(user.id).xp == 120
    assert repo.active_session().level == 2
    assert repo.apply_xp("ghost", 10) is None


def test_profile_updates(repo) -> None:
    user = repo.register("Bo", "bo@example.com", "pw")
    repo.set_theme(user.id, Theme.ROSE)
    repo.complete_onboarding(user.id)

    fresh = repo.get_user(user.id)
    assert fresh.theme == Theme.ROSE
    assert fresh.has_seen_onboarding is True
    assert repo.update_user("ghost", UserPatch(name="x")) is None


def test_refresh_session_drops_session_of_deleted_user(repo, storage) -> None:
    repo.login(DEMO_EMAIL, DEMO_PASSWORD)
    storage.data[USERS_KEY] = "[]"

    assert repo.refresh_session() is None
    assert SESSION_KEY not in storage.data


def test_corrupt_user_records_read_as_empty(repo, storage) -> None:
    storage.data[USERS_KEY] = "{oops"
    assert repo.list_users() == []
    assert repo.login(DEMO_EMAIL, DEMO_PASSWORD) is None


def test_unreadable_records_are_never_overwritten(repo, storage, clock, ids) -> None:
    ann = repo.register("Ann", "ann@x.io", "pw")
    before = storage.data[USERS_KEY]

    storage.fail_reads = True
    flaky = UserRepository(storage, clock=clock, id_factory=ids, bcrypt_rounds=4)

    assert flaky.list_users() == []
    assert flaky.update_user(ann.id, UserPatch(name="x")) is None
    assert flaky.apply_xp(ann.id, 10) is None
    with pytest.raises(StorageFailure):
        flaky.register("Bo", "bo@x.io", "pw")

    storage.fail_reads = False
    assert storage.data[USERS_KEY] == before
    assert [u.email for u in flaky.list_users()] == [DEMO_EMAIL, "ann@x.io"]


def test_corrupt_records_are_left_in_place(storage, clock, ids) -> None:
    storage.data[USERS_KEY] = "{oops"
    repo = UserRepository(storage, clock=clock, id_factory=ids, bcrypt_rounds=4)

    with pytest.raises(StorageFailure):
        repo.register("Ann", "ann@x.io", "pw")
    assert storage.data[USERS_KEY] == "{oops"


def test_refresh_keeps_session_while_records_are_unreadable(repo, storage) -> None:
    user = repo.login(DEMO_EMAIL, DEMO_PASSWORD)
    storage.data[USERS_KEY] = "{oops"

    assert repo.refresh_session() == user
    assert repo.active_session() == user


def test_get_user_skips_malformed_record(repo, storage) -> None:
    storage.data[USERS_KEY] = json.dumps([{"id": "broken", "email": "b@x.io", "xp": "lots"}])
    assert repo.get_user("broken") is None
    assert repo.get_user("ghost") is None
