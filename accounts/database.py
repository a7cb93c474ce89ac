"""
SQLite storage adapter for UserRepository.

Uniqueness among active users comes from the partial unique indexes in
accounts.schema, so two processes registering the same username cannot
both succeed. Inside one process a single connection is shared and every
statement runs under the repository lock.

atomic() opens BEGIN IMMEDIATE, which takes SQLite's write lock up front:
a count followed by an update inside it cannot interleave with another
writer, even from another process.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from core import timestamps
from core.db import get_connection
from core.errors import AlreadyExistsError, RepositoryError, UserNotFoundError, ValidationError

from . import schema
from .roles import Role
from .types import User

logger = logging.getLogger(__name__)

_COLUMNS = "id, username, email, password_hash, role, is_active, created_at, updated_at"


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role.parse(row["role"]),
        is_active=bool(row["is_active"]),
        created_at=timestamps.parse_timestamp(row["created_at"]),
        updated_at=timestamps.parse_timestamp(row["updated_at"]),
    )


def _integrity_to_conflict(exc: sqlite3.IntegrityError) -> AlreadyExistsError:
    message = str(exc)
    if "users.username" in message:
        return AlreadyExistsError("username already exists")
    if "users.email" in message:
        return AlreadyExistsError("email already exists")
    return AlreadyExistsError("user already exists")


class SQLiteUserRepository:
    """UserRepository backed by a SQLite file (or ":memory:").

    Args:
        db_path: Database file; ":memory:" or None for a private in-process DB
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self._db_path = str(db_path) if db_path else ":memory:"
        self._conn = get_connection(db_path=self._db_path, autocommit=True)
        self._lock = threading.RLock()
        self._depth = 0
        with self.atomic():
            schema.initialize(self._conn)
        logger.info("SQLite user repository ready at %s", self._db_path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def atomic(self):
        """Transaction scope; nested calls join the outer transaction."""
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if outermost and self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise
            else:
                self._depth -= 1
                if outermost:
                    try:
                        self._execute("COMMIT")
                    except RepositoryError:
                        if self._conn.in_transaction:
                            self._conn.execute("ROLLBACK")
                        raise

    def _execute(self, sql: str, params: tuple = ()):
        try:
            return self._conn.execute(sql, params)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise RepositoryError(f"database error: {type(e).__name__}") from e

    # =========================================================================
    # Writes
    # =========================================================================

    def create_user(self, user: User) -> User:
        if user is None:
            raise ValidationError("user is required")

        now = timestamps.now()
        created_at = user.created_at or now
        with self.atomic():
            try:
                cursor = self._execute(
                    "INSERT INTO users (username, email, password_hash, role, is_active, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        user.username,
                        user.email,
                        user.password_hash,
                        user.role.value,
                        1 if user.is_active else 0,
                        timestamps.to_iso(created_at),
                        timestamps.to_iso(now),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise _integrity_to_conflict(e) from None

        user.id = cursor.lastrowid
        user.created_at = created_at
        user.updated_at = now
        logger.debug("Stored user id=%s", user.id)
        return user

    def update_user(self, user: User) -> User:
        if user is None or user.id is None or user.id <= 0:
            raise ValidationError("valid user id is required")

        now = timestamps.now()
        with self.atomic():
            try:
                cursor = self._execute(
                    "UPDATE users SET username = ?, email = ?, password_hash = ?, role = ?, "
                    "is_active = ?, updated_at = ? WHERE id = ?",
                    (
                        user.username,
                        user.email,
                        user.password_hash,
                        user.role.value,
                        1 if user.is_active else 0,
                        timestamps.to_iso(now),
                        user.id,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise _integrity_to_conflict(e) from None
            if cursor.rowcount == 0:
                raise UserNotFoundError()

        user.updated_at = now
        return user

    def delete_user(self, user_id: int) -> None:
        with self.atomic():
            cursor = self._execute(
                "UPDATE users SET is_active = 0, updated_at = ? WHERE id = ?",
                (timestamps.to_iso(timestamps.now()), user_id),
            )
            if cursor.rowcount == 0:
                raise UserNotFoundError()

    # =========================================================================
    # Reads
    # =========================================================================

    def _fetch_one(self, where: str, params: tuple) -> User | None:
        with self._lock:
            row = self._execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params).fetchone()  # nosec B608
        return _row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        if not username:
            raise RepositoryError("username is required")
        return self._fetch_one("username = ? ORDER BY is_active DESC, id DESC LIMIT 1", (username,))

    def get_user_by_email(self, email: str) -> User | None:
        if not email:
            raise RepositoryError("email is required")
        return self._fetch_one("email = ? ORDER BY is_active DESC, id DESC LIMIT 1", (email,))

    def get_user_by_id(self, user_id: int) -> User | None:
        return self._fetch_one("id = ?", (user_id,))

    def list_users_by_role(self, role: Role) -> list[User]:
        with self._lock:
            rows = self._execute(
                f"SELECT {_COLUMNS} FROM users WHERE role = ? AND is_active = 1 ORDER BY id",  # nosec B608
                (Role.parse(role).value,),
            ).fetchall()
        return [_row_to_user(row) for row in rows]

    def count_users_by_role(self, role: Role) -> int:
        with self._lock:
            row = self._execute(
                "SELECT COUNT(*) FROM users WHERE role = ? AND is_active = 1",
                (Role.parse(role).value,),
            ).fetchone()
        return row[0]
