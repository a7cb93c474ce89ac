"""
User persistence contract and the in-memory reference implementation.

UserRepository is what AuthService and RoleService consume; storage
adapters implement it (see accounts.database for SQLite).

Contract notes:
- get_user_by_* return None (not an error) when nothing matches.
  Username/email lookups return the active holder if there is one, else
  the most recent inactive record, so login can tell a disabled account
  apart. Callers checking uniqueness must look at is_active.
- create_user must atomically reject a duplicate active username/email
  with AlreadyExistsError. Soft-deleted users do not block reuse.
- delete_user is a soft delete (is_active = False).
- atomic() yields a scope in which a read followed by a write is not
  interleaved with other writers. RoleService counts super_admins and
  writes the role change inside it.
"""
import logging
import threading
from contextlib import contextmanager
from typing import ContextManager, Protocol, runtime_checkable

from core import timestamps
from core.errors import AlreadyExistsError, RepositoryError, UserNotFoundError, ValidationError

from .roles import Role
from .types import User

logger = logging.getLogger(__name__)


@runtime_checkable
class UserRepository(Protocol):
    """Storage contract for User records."""

    def create_user(self, user: User) -> User: ...

    def get_user_by_username(self, username: str) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None: ...

    def get_user_by_id(self, user_id: int) -> User | None: ...

    def update_user(self, user: User) -> User: ...

    def delete_user(self, user_id: int) -> None: ...

    def list_users_by_role(self, role: Role) -> list[User]: ...

    def count_users_by_role(self, role: Role) -> int: ...

    def atomic(self) -> ContextManager[None]: ...


class InMemoryUserRepository:
    """Dict-backed repository behind one re-entrant lock.

    Stored records are never handed out; every read returns a copy and every
    write stores one. Fine for tests and single-process use only; a real
    backend should lean on unique constraints instead of this lock.
    """

    def __init__(self):
        self._users: dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    @contextmanager
    def atomic(self):
        with self._lock:
            yield

    # =========================================================================
    # Writes
    # =========================================================================

    def create_user(self, user: User) -> User:
        """Insert a new user, assigning id and timestamps.

        The passed object is updated in place with id/timestamps and also
        returned.
        """
        if user is None:
            raise ValidationError("user is required")

        with self._lock:
            self._check_unique(user.username, user.email, exclude_id=None)

            now = timestamps.now()
            user.id = self._next_id
            self._next_id += 1
            user.created_at = user.created_at or now
            user.updated_at = now
            self._users[user.id] = user.copy()

        logger.debug("Stored user id=%s", user.id)
        return user

    def update_user(self, user: User) -> User:
        if user is None or user.id is None or user.id <= 0:
            raise ValidationError("valid user id is required")

        with self._lock:
            if user.id not in self._users:
                raise UserNotFoundError()
            if user.is_active:
                self._check_unique(user.username, user.email, exclude_id=user.id)

            user.updated_at = timestamps.now()
            self._users[user.id] = user.copy()
        return user

    def delete_user(self, user_id: int) -> None:
        with self._lock:
            stored = self._users.get(user_id)
            if stored is None:
                raise UserNotFoundError()
            stored.is_active = False
            stored.updated_at = timestamps.now()

    def _check_unique(self, username: str, email: str, exclude_id: int | None) -> None:
        for existing in self._users.values():
            if existing.id == exclude_id or not existing.is_active:
                continue
            if existing.username == username:
                raise AlreadyExistsError("username already exists")
            if existing.email == email:
                raise AlreadyExistsError("email already exists")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_user_by_username(self, username: str) -> User | None:
        if not username:
            raise RepositoryError("username is required")
        return self._find(lambda u: u.username == username)

    def get_user_by_email(self, email: str) -> User | None:
        if not email:
            raise RepositoryError("email is required")
        return self._find(lambda u: u.email == email)

    def _find(self, match) -> User | None:
        """Active match first, else the newest inactive one."""
        with self._lock:
            matches = [u for u in self._users.values() if match(u)]
            if not matches:
                return None
            best = max(matches, key=lambda u: (u.is_active, u.id))
            return best.copy()

    def get_user_by_id(self, user_id: int) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return user.copy() if user else None

    def list_users_by_role(self, role: Role) -> list[User]:
        """Active users holding `role`, ordered by id."""
        with self._lock:
            return [
                u.copy() for u in sorted(self._users.values(), key=lambda u: u.id)
                if u.role == role and u.is_active
            ]

    def count_users_by_role(self, role: Role) -> int:
        with self._lock:
            return sum(1 for u in self._users.values() if u.role == role and u.is_active)

    # =========================================================================
    # Test helpers
    # =========================================================================

    def add_user(self, user: User) -> User:
        """Seed a record as-is, keeping its id, role and flags."""
        with self._lock:
            if user.id is None:
                user.id = self._next_id
            now = timestamps.now()
            user.created_at = user.created_at or now
            user.updated_at = user.updated_at or now
            self._users[user.id] = user.copy()
            self._next_id = max(self._next_id, user.id + 1)
        return user

    def all_users(self) -> list[User]:
        with self._lock:
            return [u.copy() for u in sorted(self._users.values(), key=lambda u: u.id)]

    def reset(self) -> None:
        with self._lock:
            self._users = {}
            self._next_id = 1
