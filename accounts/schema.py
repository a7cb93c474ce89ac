"""
Users table schema initialization and migrations.

Uniqueness of username and email is a database constraint, scoped to
active rows by partial indexes, so it holds across processes and not just
inside one repository instance.

initialize() is idempotent and is called by SQLiteUserRepository on
construction.
"""
import logging

from core.db import column_exists

from .roles import Role

logger = logging.getLogger(__name__)

ROLE_VALUES = tuple(role.value for role in Role)

_ROLE_CHECK = "role IN ({})".format(", ".join(f"'{r}'" for r in ROLE_VALUES))


def initialize(conn) -> None:
    """Create the users table and indexes, upgrading older layouts."""
    cursor = conn.cursor()

    cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            email TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user' CHECK ({_ROLE_CHECK}),
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    # Tables created before roles existed
    if not column_exists(conn, "users", "role"):
        logger.info("Migrating users table: adding role column")
        cursor.execute("ALTER TABLE users ADD COLUMN role TEXT NOT NULL DEFAULT 'user'")

    cursor.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS ux_users_active_username "
        "ON users(username) WHERE is_active = 1"
    )
    cursor.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS ux_users_active_email "
        "ON users(email) WHERE is_active = 1"
    )
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)")
