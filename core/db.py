"""
Database abstraction layer (DB-API 2.0 connection factory).

Thin helpers over sqlite3 for the storage adapters. NOT an ORM - just
connection management and schema introspection.

Usage:
    from core.db import get_connection, column_exists

    # Transactions managed by the caller
    conn = get_connection(db_path="/data/users.db", autocommit=True)
    try:
        ...
    finally:
        conn.close()
"""

import logging
import re
import sqlite3
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def get_connection(
    db_path: Optional[Union[str, Path]] = None,
    autocommit: bool = False,
) -> sqlite3.Connection:
    """
    Get a DB-API 2.0 connection.

    Args:
        db_path: SQLite file path (":memory:" when None)
        autocommit: If True, sqlite3 never opens implicit transactions and
            the caller issues BEGIN/COMMIT itself.

    Returns:
        Connection with row_factory set for dict-like access.
    """
    path = str(db_path) if db_path else ":memory:"
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        path,
        check_same_thread=False,
        isolation_level=None if autocommit else "",
    )
    conn.row_factory = sqlite3.Row
    if path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    logger.debug("Opened SQLite connection to %s", path)
    return conn


_IDENTIFIER_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


def _validate_identifier(name: str, label: str) -> None:
    """Validate a SQL identifier (table or column name) against injection.

    Raises ValueError if the identifier contains invalid characters.
    """
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid {label} name: {name!r}")


def column_exists(conn, table: str, column: str) -> bool:
    """
    Check if a column exists in a table.

    Raises:
        ValueError: If table or column names contain invalid characters
    """
    _validate_identifier(table, "table")
    _validate_identifier(column, "column")

    # PRAGMA table_info instead of f-string SQL against the data
    cursor = conn.cursor()
    cursor.execute(f"PRAGMA table_info({table})")
    columns = [row["name"] for row in cursor.fetchall()]
    return column in columns
