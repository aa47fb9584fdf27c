# src/lumina/users/user_repository.py

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any

import bcrypt

from ..core.ports import Clock, IdFactory, KeyValueStorage
from ..errors import DuplicateUserError, StorageFailure
from ..gamification import XpOutcome, award_xp
from ..tasks.task_models import epoch_ms
from .user_models import PlanTier, Theme, User, UserPatch, user_from_dict, user_to_dict

logger = logging.getLogger(__name__)

USERS_KEY = "lumina_users_db"
SESSION_KEY = "lumina_active_session"

DEMO_EMAIL = "demo@lumina.local"
DEMO_PASSWORD = "demo"


class UserRepository:
    """
    Local user records plus the "active session" pointer.

    All records live in one JSON list under USERS_KEY; stored records carry a
    bcrypt passwordHash that never leaves this class. The session key holds a
    copy of the logged-in user and is rewritten whenever that user changes.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Clock,
        id_factory: IdFactory,
        seed_demo_user: bool = True,
        bcrypt_rounds: int = 12,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory
        self._rounds = max(4, int(bcrypt_rounds))
        if seed_demo_user:
            self._seed_demo_user()

    # ---- low-level helpers ----

    def _read_records(self) -> list[dict[str, Any]] | None:
        """Stored records, or None when they could not be read (never write that back)."""
        try:
            raw = self._storage.get_item(USERS_KEY)
        except StorageFailure:
            logger.exception("Failed to read user records")
            return None
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.error("User records are corrupt JSON; leaving them untouched")
            return None
        if not isinstance(data, list):
            logger.error("User records are not a list; leaving them untouched")
            return None
        return [r for r in data if isinstance(r, dict) and r.get("id")]

    def _write_records(self, records: list[dict[str, Any]]) -> bool:
        try:
            self._storage.set_item(USERS_KEY, json.dumps(records, ensure_ascii=False))
            return True
        except StorageFailure:
            logger.exception("Failed to write user records")
            return False

    def _hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode("ascii")

    @staticmethod
    def _check(password: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("ascii"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    @staticmethod
    def _public(record: dict[str, Any]) -> User:
        return user_from_dict(record)

    def _seed_demo_user(self) -> None:
        records = self._read_records()
        if records is None:
            logger.warning("User records unavailable; skipping demo seeding")
            return
        if any(str(r.get("email", "")).lower() == DEMO_EMAIL for r in records):
            return
        demo = User(
            id="user_demo",
            name="Demo",
            email=DEMO_EMAIL,
            plan=PlanTier.FREE,
            xp=0,
            level=1,
            theme=Theme.BLUE,
            has_seen_onboarding=False,
            created_at=epoch_ms(self._clock.now()),
        )
        record = user_to_dict(demo)
        record["passwordHash"] = self._hash(DEMO_PASSWORD)
        records.append(record)
        if self._write_records(records):
            logger.info("Seeded demo user %s", DEMO_EMAIL)

    # ---- users ----

    def list_users(self) -> list[User]:
        out: list[User] = []
        for r in self._read_records() or []:
            try:
                out.append(self._public(r))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed user record id=%r", r.get("id"))
        return out

    def get_user(self, user_id: str) -> User | None:
        for r in self._read_records() or []:
            if r.get("id") != user_id:
                continue
            try:
                return self._public(r)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed user record id=%r", user_id)
                return None
        return None

    def register(self, name: str, email: str, password: str) -> User:
        email_n = email.strip()
        if not email_n:
            raise ValueError("email is required")
        if not password:
            raise ValueError("password is required")

        records = self._read_records()
        if records is None:
            raise StorageFailure("user records are unavailable")
        if any(str(r.get("email", "")).lower() == email_n.lower() for r in records):
            raise DuplicateUserError(f"an account for {email_n} already exists")

        user = User(
            id=self._id_factory(),
            name=name.strip() or email_n.split("@")[0],
            email=email_n,
            plan=PlanTier.FREE,
            xp=0,
            level=1,
            theme=Theme.BLUE,
            has_seen_onboarding=False,
            created_at=epoch_ms(self._clock.now()),
        )
        record = user_to_dict(user)
        record["passwordHash"] = self._hash(password)
        records.append(record)
        if not self._write_records(records):
            raise StorageFailure(f"could not save the account for {email_n}")
        logger.info("Registered user id=%s", user.id)
        return user

    def login(self, email: str, password: str) -> User | None:
        email_n = email.strip().lower()
        for r in self._read_records() or []:
            if str(r.get("email", "")).lower() != email_n:
                continue
            if not self._check(password, r.get("passwordHash")):
                break
            user = self._public(r)
            self._write_session(user)
            logger.info("Login ok user=%s", user.id)
            return user
        logger.info("Login failed email=%s", email_n)
        return None

    def update_user(self, user_id: str, patch: UserPatch) -> User | None:
        records = self._read_records()
        if records is None:
            return None
        for i, r in enumerate(records):
            if r.get("id") != user_id:
                continue
            current = self._public(r)
            updated = replace(
                current,
                name=current.name if patch.name is None else patch.name,
                plan=current.plan if patch.plan is None else patch.plan,
                theme=current.theme if patch.theme is None else patch.theme,
                has_seen_onboarding=(
                    current.has_seen_onboarding
                    if patch.has_seen_onboarding is None
                    else patch.has_seen_onboarding
                ),
            )
            return self._store_updated(records, i, updated)
        logger.debug("update_user: no user id=%s", user_id)
        return None

    def apply_xp(self, user_id: str, amount: int) -> XpOutcome | None:
        """Credit XP through the calculator (plan gate + level) and persist the result."""
        records = self._read_records()
        if records is None:
            return None
        for i, r in enumerate(records):
            if r.get("id") != user_id:
                continue
            outcome = award_xp(self._public(r), amount)
            if outcome.awarded:
                self._store_updated(records, i, outcome.user)
            return outcome
        logger.debug("apply_xp: no user id=%s", user_id)
        return None

    def _store_updated(self, records: list[dict[str, Any]], index: int, user: User) -> User:
        record = dict(records[index])
        record.update(user_to_dict(user))
        records[index] = record
        self._write_records(records)
        session = self.active_session()
        if session is not None and session.id == user.id:
            self._write_session(user)
        return user

    # ---- convenience flows ----

    def upgrade_plan(self, user_id: str, plan: PlanTier) -> User | None:
        return self.update_user(user_id, UserPatch(plan=plan))

    def set_theme(self, user_id: str, theme: Theme) -> User | None:
        return self.update_user(user_id, UserPatch(theme=theme))

    def complete_onboarding(self, user_id: str) -> User | None:
        return self.update_user(user_id, UserPatch(has_seen_onboarding=True))

    # ---- session ----

    def _write_session(self, user: User) -> None:
        try:
            self._storage.set_item(SESSION_KEY, json.dumps(user_to_dict(user), ensure_ascii=False))
        except StorageFailure:
            logger.exception("Failed to write active session")

    def active_session(self) -> User | None:
        try:
            raw = self._storage.get_item(SESSION_KEY)
        except StorageFailure:
            logger.exception("Failed to read active session")
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
            return user_from_dict(data) if isinstance(data, dict) else None
        except (KeyError, TypeError, ValueError):
            logger.warning("Active session record is corrupt; ignoring it")
            return None

    def refresh_session(self) -> User | None:
        """
        Re-read the session user's record (catches plan changes made elsewhere).

        A session pointing at a user that no longer exists is dropped.
        """
        session = self.active_session()
        if session is None:
            return None
        if self._read_records() is None:
            return session
        fresh = self.get_user(session.id)
        if fresh is None:
            self.logout()
            return None
        if fresh != session:
            self._write_session(fresh)
        return fresh

    def logout(self) -> None:
        try:
            self._storage.remove_item(SESSION_KEY)
        except StorageFailure:
            logger.exception("Failed to clear active session")
