"""
SQLite connection layer backing the object store.
"""

import re
import sqlite3
from contextlib import contextmanager
from typing import Generator, Optional

from .config import DB_PATH, ensure_db_directory
from .errors import StorageOperationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """Quote a table/index/field name; only plain identifiers are accepted."""
    if not name or not _IDENTIFIER.match(name):
        raise StorageOperationError(f"Invalid store identifier: {name!r}")
    return f'"{name}"'


@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    path = db_path or DB_PATH
    try:
        if path != ":memory:":
            ensure_db_directory(path)
        conn = sqlite3.connect(path)
    except (sqlite3.Error, OSError) as e:
        raise StorageOperationError(f"Database initialization failed: {e}") from e
    try:
        yield conn
    finally:
        conn.close()


def init_store(conn: sqlite3.Connection, store_name: str, index_field: Optional[str] = None):
    """Create the object store table (and optional attribute index) if missing."""
    table = quote_identifier(store_name)
    cursor = conn.cursor()
    cursor.execute(f'''
        CREATE TABLE IF NOT EXISTS {table} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            data TEXT NOT NULL
        )
    ''')

    if index_field:
        index_name = quote_identifier(f"by_{index_field}_{store_name}")
        quote_identifier(index_field)
        cursor.execute(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON {table}(json_extract(data, '$.{index_field}'))"
        )

    conn.commit()


def store_exists(conn: sqlite3.Connection, store_name: str) -> bool:
    """Check whether the object store table exists."""
    cursor = conn.cursor()
    cursor.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
        (store_name,)
    )
    return cursor.fetchone() is not None


def health_check(db_path: Optional[str] = None) -> bool:
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            return cursor.fetchone() == (1,)
    except (sqlite3.Error, StorageOperationError):
        return False
